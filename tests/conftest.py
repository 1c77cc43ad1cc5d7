import os
import sys
from types import ModuleType, SimpleNamespace

import pytest
from eth_utils import to_checksum_address

import punk_deployment.networks
import punk_deployment.utils
from punk_deployment.constants import ETHERSCAN_API_KEY_ENVVAR, MADPUNK, PUNKCOIN

LOCAL_CHAIN_ID = 1337
SEPOLIA_CHAIN_ID = 11155111


def random_address():
    return to_checksum_address("0x" + os.urandom(20).hex())


class DeploymentReverted(Exception):
    pass


class FakeABIEntry:
    def __init__(self, **fields):
        self.fields = fields

    def model_dump(self, **kwargs):
        return dict(self.fields)


class FakeContractInstance:
    """Exposes the creation receipt the way ape 0.8 does, through ``creation_metadata``."""

    def __init__(self, container, address, receipt=None):
        self.contract_type = container.contract_type
        self.address = address
        self.creation_metadata = None
        if receipt is not None:
            self.creation_metadata = SimpleNamespace(receipt=receipt)


class FakeContractContainer:
    def __init__(self, name, constructor_inputs=()):
        inputs = [SimpleNamespace(name=n, type=t) for n, t in constructor_inputs]
        abi = [
            FakeABIEntry(type="function", name="name", inputs=[], outputs=[]),
            FakeABIEntry(
                type="constructor", inputs=[{"name": n, "type": t} for n, t in constructor_inputs]
            ),
        ]
        self.contract_type = SimpleNamespace(name=name, abi=abi)
        self.constructor = SimpleNamespace(abi=SimpleNamespace(inputs=inputs))

    def deploy(self, *args, sender, publish=False):
        return sender.deploy(self, *args, publish=publish)

    def at(self, address):
        return FakeContractInstance(self, address)


class FakeAccount:
    """Deploys instantly, handing out a fresh address per deployment."""

    def __init__(self, chain_id=LOCAL_CHAIN_ID, failing=()):
        self.address = random_address()
        self.chain_id = chain_id
        self.failing = set(failing)
        self.attempts = []
        self.publish_flags = []

    def deploy(self, container, *args, publish=False, **kwargs):
        name = container.contract_type.name
        self.attempts.append((name, args))
        self.publish_flags.append(publish)
        if name in self.failing:
            raise DeploymentReverted(f"{name} deployment reverted")
        receipt = SimpleNamespace(
            txn_hash="0x" + os.urandom(32).hex(),
            block_number=len(self.attempts),
            transaction=SimpleNamespace(sender=self.address, chain_id=self.chain_id),
        )
        return FakeContractInstance(container, random_address(), receipt=receipt)


class FakeExplorer:
    def __init__(self):
        self.published = []

    def publish_contract(self, address):
        self.published.append(address)


class FakeNetworkManager:
    def __init__(self, name, chain_id):
        self.explorer = FakeExplorer()
        network = SimpleNamespace(
            name=name,
            chain_id=chain_id,
            ecosystem=SimpleNamespace(name="ethereum"),
            explorer=self.explorer,
        )
        self.provider = SimpleNamespace(name="test", network=network, gas_price=1_000_000_000)


def _use_network(monkeypatch, name, chain_id):
    manager = FakeNetworkManager(name=name, chain_id=chain_id)
    monkeypatch.setattr(punk_deployment.networks, "networks", manager)
    return manager


def _use_project(monkeypatch, madpunk_inputs):
    project = SimpleNamespace(
        PunkCoin=FakeContractContainer(PUNKCOIN),
        Madpunk=FakeContractContainer(MADPUNK, madpunk_inputs),
    )
    monkeypatch.setattr(punk_deployment.utils, "project", project)
    return project


@pytest.fixture
def local_network(monkeypatch):
    return _use_network(monkeypatch, name="local", chain_id=LOCAL_CHAIN_ID)


@pytest.fixture
def live_network(monkeypatch):
    manager = _use_network(monkeypatch, name="sepolia", chain_id=SEPOLIA_CHAIN_ID)
    monkeypatch.setitem(sys.modules, "ape_etherscan", ModuleType("ape_etherscan"))
    monkeypatch.setenv(ETHERSCAN_API_KEY_ENVVAR, "punk-etherscan-key")
    return manager


@pytest.fixture
def migration_project(monkeypatch):
    """Madpunk takes the PunkCoin address."""
    return _use_project(monkeypatch, madpunk_inputs=[("_token", "address")])


@pytest.fixture
def toolkit_project(monkeypatch):
    """Madpunk takes a greeting string."""
    return _use_project(monkeypatch, madpunk_inputs=[("_greeting", "string")])


@pytest.fixture
def deployer_account():
    return FakeAccount()


@pytest.fixture
def punk_config(tmp_path):
    return {
        "deployment": {"name": "punk-test", "chain_id": LOCAL_CHAIN_ID},
        "artifacts": {"dir": str(tmp_path), "filename": "punk-test.json"},
        "contracts": [PUNKCOIN, {MADPUNK: {"constructor": {"_token": "$PunkCoin"}}}],
    }


@pytest.fixture
def fake_accounts(monkeypatch):
    """Stands in for ape's account manager: one test account, aliases load fresh accounts."""
    loaded = {}

    def load(alias):
        loaded[alias] = FakeAccount()
        return loaded[alias]

    container = SimpleNamespace(test_accounts=[FakeAccount()], load=load, loaded=loaded)
    monkeypatch.setattr(punk_deployment.utils, "accounts", container)
    return container
