#!/usr/bin/env python3

import os

from ape_accounts import import_account_from_private_key

from punk_deployment.constants import DEPLOYER_ACCOUNT_ENVVAR


def main():
    try:
        alias = os.environ[DEPLOYER_ACCOUNT_ENVVAR]
        passphrase = os.environ["DEPLOYER_PASSPHRASE"]
        private_key = os.environ["DEPLOYER_PRIVATE_KEY"]
    except KeyError:
        raise Exception(
            "There are missing environment variables. Please set "
            f"{DEPLOYER_ACCOUNT_ENVVAR}, DEPLOYER_PASSPHRASE and DEPLOYER_PRIVATE_KEY."
        )
    account = import_account_from_private_key(alias, passphrase, private_key)
    print(f"Account imported: {account.address}")


if __name__ == "__main__":
    main()
