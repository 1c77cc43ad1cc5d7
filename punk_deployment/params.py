import typing
from abc import ABC, abstractmethod
from collections import OrderedDict, namedtuple
from pathlib import Path
from typing import Any, List

from ape.api import AccountAPI
from ape.contracts import ContractContainer, ContractInstance
from ape.utils import ZERO_ADDRESS
from web3.auto import w3

from punk_deployment.confirm import _confirm_resolution, _continue
from punk_deployment.networks import (
    get_chain_id,
    get_ecosystem_name,
    get_gas_price,
    get_network_name,
    is_local_network,
)
from punk_deployment.registry import publish_deployments
from punk_deployment.utils import (
    _load_yaml,
    check_plugins,
    get_account,
    get_contract_container,
    validate_config,
    verify_contracts,
)

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"


class VariableContext:
    def __init__(
        self,
        contract_names: List[str],
        contract_name: str,
        deployments: typing.Mapping[str, ContractInstance],
        deployer_address: str = ZERO_ADDRESS,
        constants: typing.Dict[str, Any] = None,
    ):
        self.contract_names = contract_names or list()
        self.contract_name = contract_name
        self.deployments = deployments
        self.deployer_address = deployer_address
        self.constants = constants or dict()


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    def __init__(self, context: VariableContext):
        self.address = context.deployer_address

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is the special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self) -> Any:
        return self.address


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise ValueError(f"Constant '{constant_name}' not found in deployment file.")

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self) -> Any:
        return self.constant_value


class ContractName(Variable):
    """The address of a contract deployed earlier in the same run."""

    def __init__(self, contract_name: str, context: VariableContext):
        if contract_name not in context.contract_names:
            raise ValueError(f"Contract name {contract_name} not found")

        dependency_position = context.contract_names.index(contract_name)
        dependent_position = context.contract_names.index(context.contract_name)
        if dependency_position >= dependent_position:
            raise ConstructorParameters.Invalid(
                f"{context.contract_name} depends on {contract_name}, "
                f"which must be listed (and deployed) before it."
            )

        self.contract_name = contract_name
        self.deployments = context.deployments

    def is_deployed(self) -> bool:
        return self.contract_name in self.deployments

    def resolve(self) -> Any:
        """Resolves a contract address."""
        contract_instance = self.deployments.get(self.contract_name)
        if contract_instance is None:
            # eager validation
            return ZERO_ADDRESS
        return contract_instance.address


def _resolve_param(value: Any) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v) for v in value]

    if isinstance(value, Variable):
        return value.resolve()

    return value  # literally a value


def _resolve_params(parameters: OrderedDict) -> OrderedDict:
    resolved_parameters = OrderedDict()
    for name, value in parameters.items():
        resolved_parameters[name] = _resolve_param(value)

    return resolved_parameters


def _variable_from_value(variable: Any, context: VariableContext) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount(context)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        return ContractName(variable, context)


def _process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, variable_context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)

    return value


def _process_raw_values(values: typing.Dict, variable_context: VariableContext) -> OrderedDict:
    processed_parameters = OrderedDict()
    for name, value in values.items():
        processed_parameters[name] = _process_raw_value(value, variable_context)

    return processed_parameters


def _contract_dependencies(value: Any) -> List[ContractName]:
    if isinstance(value, list):
        return [dependency for v in value for dependency in _contract_dependencies(v)]
    if isinstance(value, ContractName):
        return [value]
    return []


def _get_contract_names(config: typing.Dict) -> List[str]:
    contract_names = list()
    for contract_info in config["contracts"]:
        if isinstance(contract_info, str):
            names = [contract_info]
        elif isinstance(contract_info, dict) and len(contract_info) == 1:
            names = list(contract_info.keys())
        else:
            raise ValueError("Malformed constructor parameters YAML.")

        for name in names:
            if name in contract_names:
                raise ValueError(f"Contract {name} is listed more than once.")
            contract_names.append(name)

    return contract_names


def _validate_constructor_abi_inputs(
    contract_name: str,
    abi_inputs: List[Any],
    resolved_parameters: OrderedDict,
) -> None:
    """Validates the constructor parameters against the constructor ABI."""
    if len(resolved_parameters) != len(abi_inputs):
        raise ConstructorParameters.Invalid(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(resolved_parameters)}."
        )
    if not abi_inputs:
        return  # no constructor parameters

    codex = enumerate(zip(abi_inputs, resolved_parameters.items()), start=0)
    for position, (abi_input, resolved_input) in codex:
        name, value = resolved_input
        # validate name
        if abi_input.name != name:
            raise ConstructorParameters.Invalid(
                f"{contract_name} constructor parameter '{name}' at position {position} does not "
                f"match the expected ABI name '{abi_input.name}'."
            )

        # validate value type
        if not w3.is_encodable(abi_input.type, value):
            raise ConstructorParameters.Invalid(
                f"Constructor param name '{name}' at position {position} has a value '{value}' "
                f"whose type does not match expected ABI type '{abi_input.type}'"
            )


def validate_constructor_parameters(contracts_parameters: OrderedDict) -> None:
    """Validates the constructor parameters for all contracts in a single config."""
    for contract, parameters in contracts_parameters.items():
        resolved_parameters = _resolve_params(parameters=parameters)
        contract_container = get_contract_container(contract)
        _validate_constructor_abi_inputs(
            contract_name=contract,
            abi_inputs=contract_container.constructor.abi.inputs,
            resolved_parameters=resolved_parameters,
        )


class ConstructorParameters:
    """Represents the constructor parameters for an ordered set of contracts."""

    class Invalid(Exception):
        """Raised when the constructor parameters are invalid"""

    def __init__(self, parameters: OrderedDict):
        self.parameters = parameters
        validate_constructor_parameters(parameters)

    @classmethod
    def from_config(
        cls,
        config: typing.Dict,
        deployments: typing.Mapping[str, ContractInstance],
        deployer_address: str = ZERO_ADDRESS,
    ) -> "ConstructorParameters":
        """Loads the constructor parameters from a params config."""
        print("Processing contract constructor parameters...")
        contracts_config = OrderedDict()
        contract_names = _get_contract_names(config)
        constants = config.get("constants")
        for contract_info in config["contracts"]:
            if isinstance(contract_info, str):
                contracts_config[contract_info] = OrderedDict()
                continue

            contract_name = list(contract_info.keys())[0]  # only one entry
            contract_data = contract_info[contract_name] or dict()
            if not isinstance(contract_data, dict):
                # this can happen if the yml file is malformed
                raise ValueError(f"Malformed constructor parameter config for {contract_name}.")

            variable_context = VariableContext(
                contract_names=contract_names,
                contract_name=contract_name,
                deployments=deployments,
                deployer_address=deployer_address,
                constants=constants,
            )
            constructor_values = contract_data.get(CONTRACT_CONSTRUCTOR_PARAMETER_KEY) or dict()
            contracts_config[contract_name] = _process_raw_values(
                constructor_values, variable_context
            )

        return cls(parameters=contracts_config)

    def contract_names(self) -> List[str]:
        return list(self.parameters)

    def _get(self, contract_name: str) -> OrderedDict:
        try:
            return self.parameters[contract_name]
        except KeyError:
            raise ValueError(f"{contract_name} is not listed in the deployment params.")

    def check_dependencies(self, contract_name: str) -> None:
        """Raises if a contract referenced by the constructor has not been deployed yet."""
        for value in self._get(contract_name).values():
            for dependency in _contract_dependencies(value):
                if not dependency.is_deployed():
                    raise ConstructorParameters.Invalid(
                        f"{contract_name} requires {dependency.contract_name} "
                        f"to be deployed first."
                    )

    def resolve(self, contract_name: str) -> OrderedDict:
        """Resolves the constructor parameters for a single contract."""
        resolved_params = _resolve_params(self._get(contract_name))
        return resolved_params


class Deployer:
    """
    Represents an ape account plus deployment parameters for an
    ordered set of contracts, plus validated/annotated execution.
    Every deployment made through it is recorded for the rest of the run.
    """

    def __init__(
        self,
        config: typing.Dict,
        path: Path,
        verify: bool,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
    ):
        self._account = account if account is not None else get_account()
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
            if hasattr(self._account, "set_autosign"):
                self._account.set_autosign(autosign)
        self._autosign = autosign

        check_plugins()
        self.path = path
        self.config = config
        self.verify = verify
        self.registry_filepath = validate_config(config=self.config)

        self.deployments: typing.Dict[str, ContractInstance] = OrderedDict()
        self.constructor_parameters = ConstructorParameters.from_config(
            self.config,
            deployments=self.deployments,
            deployer_address=self._account.address,
        )

        # Little trick to expose constants as attributes (e.g., deployer.constants.FOO)
        constants = config.get("constants") or {}
        _Constants = namedtuple("_Constants", list(constants))
        self.constants = _Constants(**constants)

        self._print_deployment_info()

        if not self._autosign:
            # Confirms the start of the deployment.
            _continue()

    @classmethod
    def from_yaml(cls, filepath: Path, *args, **kwargs) -> "Deployer":
        config = _load_yaml(filepath)
        return cls(config=config, path=filepath, *args, **kwargs)

    def get_account(self) -> AccountAPI:
        """Returns the deployer account."""
        return self._account

    def get_deployment(self, contract_name: str) -> ContractInstance:
        try:
            return self.deployments[contract_name]
        except KeyError:
            raise ValueError(f"{contract_name} has not been deployed in this run.")

    def deploy(self, container: ContractContainer) -> ContractInstance:
        """Deploys a single contract and waits for its receipt to be confirmed."""
        contract_name = container.contract_type.name
        if contract_name in self.deployments:
            raise ValueError(f"{contract_name} has already been deployed in this run.")

        self.constructor_parameters.check_dependencies(contract_name)
        resolved_params = self.constructor_parameters.resolve(contract_name)
        if not self._autosign:
            _confirm_resolution(resolved_params, contract_name)

        print(f"\nDeploying {contract_name}...")
        instance = self._account.deploy(container, *resolved_params.values())
        self.deployments[contract_name] = instance
        print(f"{contract_name} contract deployed to: {instance.address}")
        return instance

    def finalize(self) -> typing.Optional[Path]:
        """
        Publishes this run's deployments to the registry and optionally to block explorers.
        """
        if is_local_network():
            print("(i) Local network; registry not written.")
            return None

        registry_filepath = publish_deployments(
            deployments=self.deployments,
            output_filepath=self.registry_filepath,
            chain_id=get_chain_id(),
        )
        if self.verify:
            verify_contracts(contracts=list(self.deployments.values()))
        return registry_filepath

    def _print_deployment_info(self):
        print(
            f"Account: {self.get_account().address}",
            f"Config: {self.path}",
            f"Registry: {self.registry_filepath}",
            f"Verify: {self.verify}",
            f"Ecosystem: {get_ecosystem_name()}",
            f"Network: {get_network_name()}",
            f"Chain ID: {get_chain_id()}",
            f"Gas Price: {get_gas_price()}",
            sep="\n",
        )
