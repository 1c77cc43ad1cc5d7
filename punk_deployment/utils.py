import json
import os
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from ape import accounts, project
from ape.api import AccountAPI
from ape.cli.choices import select_account
from ape.contracts import ContractContainer, ContractInstance

from punk_deployment.constants import (
    ARTIFACTS_DIR,
    DEPLOYER_ACCOUNT_ENVVAR,
    ETHERSCAN_API_KEY_ENVVAR,
)
from punk_deployment.networks import get_chain_id, get_explorer, is_local_network


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def get_artifact_filepath(config: Dict) -> Path:
    """Returns the filepath of the registry artifact."""
    artifact_config = config.get("artifacts") or {}
    artifact_dir = Path(artifact_config.get("dir", ARTIFACTS_DIR))
    filename = artifact_config.get("filename")
    if not filename:
        raise ValueError("artifact filename is not set in params file.")
    return artifact_dir / filename


def validate_config(config: Dict) -> Path:
    """
    Checks that the params file is complete and, for live networks, that it
    targets the connected chain and has not already been published.
    """
    print("Validating parameters YAML...")

    deployment = config.get("deployment")
    if not deployment:
        raise ValueError("deployment is not set in params file.")

    config_chain_id = deployment.get("chain_id")
    if not config_chain_id:
        raise ValueError("chain_id is not set in params file.")

    contracts = config.get("contracts")
    if not contracts:
        raise ValueError("Constructor parameters file missing 'contracts' field.")

    registry_filepath = get_artifact_filepath(config=config)
    if is_local_network():
        # development chains are ephemeral; every run is a fresh deployment
        return registry_filepath

    config_chain_id = int(config_chain_id)
    network_chain_id = get_chain_id()
    if config_chain_id != network_chain_id:
        raise ValueError(
            f"chain_id in params file ({config_chain_id}) does not match "
            f"chain_id of current network ({network_chain_id})."
        )

    if not registry_filepath.exists():
        return registry_filepath

    registry_chain_ids = map(int, _load_json(registry_filepath).keys())
    if config_chain_id in registry_chain_ids:
        raise ValueError(f"Deployment is already published for chain_id {config_chain_id}.")

    return registry_filepath


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the API key environment variable is set.
    """
    if is_local_network():
        # unnecessary for local deployment
        return
    try:
        import ape_etherscan  # noqa: F401
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to use this script.")
    api_key = os.environ.get(ETHERSCAN_API_KEY_ENVVAR)
    if not api_key:
        raise ValueError(f"{ETHERSCAN_API_KEY_ENVVAR} is not set.")


def check_plugins() -> None:
    print("Checking plugins...")
    check_etherscan_plugin()


def verify_contracts(contracts: List[ContractInstance]) -> None:
    explorer = get_explorer()
    if explorer is None:
        raise ValueError("No block explorer is configured for the current network.")
    for instance in contracts:
        print(f"(i) Verifying {instance.contract_type.name}...")
        explorer.publish_contract(instance.address)


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        raise ValueError(f"No contract found with name '{contract}'.")
    return contract_container


def get_account(alias: Optional[str] = None) -> AccountAPI:
    """
    Returns the account that signs deployments.

    Local networks always use the first test account. Live networks use the
    given alias, falling back to the DEPLOYER_ACCOUNT environment variable,
    and finally to an interactive selection.
    """
    if is_local_network():
        return accounts.test_accounts[0]

    alias = alias or os.environ.get(DEPLOYER_ACCOUNT_ENVVAR)
    if alias:
        return accounts.load(alias)
    return select_account()
