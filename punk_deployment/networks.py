from ape import networks

from punk_deployment.constants import LOCAL_NETWORKS


def is_local_network() -> bool:
    """Returns True if the connected network is an ephemeral development chain."""
    return networks.provider.network.name in LOCAL_NETWORKS


def get_chain_id() -> int:
    return networks.provider.network.chain_id


def get_network_name() -> str:
    return networks.provider.network.name


def get_ecosystem_name() -> str:
    return networks.provider.network.ecosystem.name


def get_gas_price() -> int:
    return networks.provider.gas_price


def get_explorer():
    """Returns the block explorer API of the connected network, if any."""
    return networks.provider.network.explorer
