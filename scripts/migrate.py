#!/usr/bin/python3
import sys

from punk_deployment.constants import CONSTRUCTOR_PARAMS_DIR, PARAMS_FILENAME
from punk_deployment.networks import get_network_name, is_local_network
from punk_deployment.params import Deployer
from punk_deployment.runner import execute
from punk_deployment.sequences import deploy_with_migrations


def _migrate():
    local = is_local_network()
    params_filepath = CONSTRUCTOR_PARAMS_DIR / get_network_name() / PARAMS_FILENAME

    deployer = Deployer.from_yaml(filepath=params_filepath, verify=not local, autosign=local)
    deploy_with_migrations(deployer)
    deployer.finalize()


def main():
    """
    Deploys PunkCoin and then Madpunk, passing the PunkCoin address to
    the Madpunk constructor, and records both in the network's registry.

    ape run migrate --network ethereum:local:test
    ape run migrate --network ethereum:sepolia:infura
    """
    sys.exit(execute(_migrate))
