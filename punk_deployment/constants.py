from pathlib import Path

import punk_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(punk_deployment.__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"
PARAMS_FILENAME = "punk.yml"

#
# Networks
#

LOCAL_NETWORKS = ["local"]

#
# Contracts
#

PUNKCOIN = "PunkCoin"
MADPUNK = "Madpunk"

MADPUNK_GREETING = "Deployed Madpunk!"

#
# Environment
#

ETHERSCAN_API_KEY_ENVVAR = "ETHERSCAN_API_KEY"
DEPLOYER_ACCOUNT_ENVVAR = "DEPLOYER_ACCOUNT"

#
# Process
#

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
