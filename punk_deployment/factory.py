from ape.api import AccountAPI
from ape.contracts import ContractContainer, ContractInstance

from punk_deployment.utils import get_contract_container


class ContractFactory:
    """A compiled contract type bound to the account that deploys it."""

    def __init__(self, container: ContractContainer, account: AccountAPI, publish: bool = False):
        self.container = container
        self.account = account
        self.publish = publish

    @property
    def name(self) -> str:
        return self.container.contract_type.name

    def deploy(self, *args) -> ContractInstance:
        """
        Sends the deployment transaction and returns the instance
        once its receipt has been confirmed.
        """
        return self.container.deploy(*args, sender=self.account, publish=self.publish)

    def __repr__(self) -> str:
        return f"<ContractFactory {self.name}>"


def get_contract_factory(name: str, account: AccountAPI, publish: bool = False) -> ContractFactory:
    container = get_contract_container(name)
    return ContractFactory(container=container, account=account, publish=publish)
