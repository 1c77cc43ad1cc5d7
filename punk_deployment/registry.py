import json
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Mapping, NamedTuple

from ape.contracts import ContractInstance
from eth_typing import ABI, ChecksumAddress
from eth_utils import to_checksum_address

from punk_deployment.utils import _load_json

STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class RegistryEntry(NamedTuple):
    """A contract deployed on a live chain, as recorded in the registry."""

    chain_id: int
    name: str
    address: ChecksumAddress
    abi: ABI
    tx_hash: str
    block_number: int
    deployer: str

    def to_json(self) -> Dict:
        abi = sorted(self.abi, key=lambda item: (item["type"], item.get("name", "")))
        return {
            "address": self.address,
            "abi": abi,
            "tx_hash": self.tx_hash,
            "block_number": int(self.block_number),
            "deployer": self.deployer,
        }


def registry_entry(contract_name: str, instance: ContractInstance, chain_id: int) -> RegistryEntry:
    """Builds an entry from the creation receipt of a freshly deployed instance."""
    creation = instance.creation_metadata
    if creation is None:
        raise ValueError(f"No creation receipt found for {contract_name} at {instance.address}.")
    receipt = creation.receipt

    abi = [
        item.model_dump(mode="json", by_alias=True, exclude_none=True)
        for item in instance.contract_type.abi
    ]
    return RegistryEntry(
        chain_id=chain_id,
        name=contract_name,
        address=to_checksum_address(instance.address),
        abi=abi,
        tx_hash=receipt.txn_hash,
        block_number=receipt.block_number,
        deployer=receipt.transaction.sender,
    )


def write_registry(entries: List[RegistryEntry], filepath: Path) -> Path:
    """
    Writes entries grouped by chain id, then contract name, both sorted.

    An existing registry is extended with chains it does not know yet. When a
    chain is already present, nothing is overwritten; the new data goes to a
    sibling ``.unmerged.json`` file instead.
    """
    data = defaultdict(dict)
    for entry in sorted(entries, key=lambda e: (str(e.chain_id), e.name)):
        data[str(entry.chain_id)][entry.name] = entry.to_json()

    filepath.parent.mkdir(parents=True, exist_ok=True)
    if filepath.exists():
        existing_data = _load_json(filepath)
        if any(chain_id in existing_data for chain_id in data):
            filepath = filepath.with_suffix(".unmerged.json")
            print(
                "Cannot merge registries with overlapping chain IDs.\n"
                f"Writing to {filepath} to avoid overwriting existing data."
            )
        else:
            print(f"Updating existing registry at {filepath}.")
            existing_data.update(data)
            data = existing_data
    else:
        print(f"Creating new registry at {filepath}.")

    with open(filepath, "w") as file:
        json.dump(data, file, **STANDARD_REGISTRY_JSON_FORMAT)
    return filepath


def publish_deployments(
    deployments: Mapping[str, ContractInstance], output_filepath: Path, chain_id: int
) -> Path:
    """Records the deployments of a single run in the registry."""
    if not deployments:
        raise ValueError("No deployments to publish.")

    entries = [
        registry_entry(contract_name=name, instance=instance, chain_id=chain_id)
        for name, instance in deployments.items()
    ]
    output_filepath = write_registry(entries=entries, filepath=output_filepath)
    print(f"(i) Registry written to {output_filepath}!")
    return output_filepath
