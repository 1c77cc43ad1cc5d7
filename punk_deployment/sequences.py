from typing import List

from ape.api import AccountAPI
from ape.contracts import ContractInstance

from punk_deployment.constants import MADPUNK, MADPUNK_GREETING, PUNKCOIN
from punk_deployment.factory import get_contract_factory
from punk_deployment.params import Deployer
from punk_deployment.utils import get_contract_container


def deploy_with_migrations(deployer: Deployer) -> List[ContractInstance]:
    """
    Deploys PunkCoin, then Madpunk with the PunkCoin address
    (``$PunkCoin`` in the params file) as its constructor argument.
    """
    punkcoin = deployer.deploy(get_contract_container(PUNKCOIN))
    madpunk = deployer.deploy(get_contract_container(MADPUNK))
    return [punkcoin, madpunk]


def deploy_with_factories(account: AccountAPI, publish: bool = False) -> List[ContractInstance]:
    # deployment for madpunk contract
    madpunk_factory = get_contract_factory(MADPUNK, account=account, publish=publish)
    madpunk = madpunk_factory.deploy(MADPUNK_GREETING)
    print(f"Madpunk Contract deployed to: {madpunk.address}")

    # deployment for punkcoin contract
    punkcoin_factory = get_contract_factory(PUNKCOIN, account=account, publish=publish)
    punkcoin = punkcoin_factory.deploy()
    print(f"Punkcoin contract deployed to: {punkcoin.address}")

    return [madpunk, punkcoin]
