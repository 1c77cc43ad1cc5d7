#!/usr/bin/python3
import sys

from punk_deployment.networks import is_local_network
from punk_deployment.runner import execute
from punk_deployment.sequences import deploy_with_factories
from punk_deployment.utils import check_plugins, get_account


def _deploy(account_id=None):
    publish = not is_local_network()
    if publish:
        check_plugins()
    deploy_with_factories(account=get_account(account_id), publish=publish)


def main(account_id=None):
    """
    Deploys Madpunk with its greeting, then PunkCoin.

    ape run deploy --network ethereum:local:test
    """
    sys.exit(execute(lambda: _deploy(account_id)))
