"""
Contract Registry - Single source of truth for API contracts.

Each contract has:
- name: identifier within its export group (e.g., "CreateUserRequest")
- schema: the Schema a payload must satisfy
- export_group: name used to group contracts for client generation
- version: monotonically increasing, starting at 1
- coerce: whether narrow coercions ("29" -> 29) are allowed

The registry is an explicitly constructed instance, not a module global.
Flask apps keep theirs in app.extensions["contract_registry"].

Concurrency:
- Reads (get, group, merge, list_contracts) never lock. They read one
  immutable snapshot reference.
- Writes serialize on a lock, build a new snapshot and publish it with a
  single assignment, so a reader never sees a half-registered group.
"""

import logging
import threading
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .fields import Schema
from .validate import ValidationResult, cast, validate


logger = logging.getLogger('api.contracts.registry')


class ContractError(Exception):
    """Base class for registry errors."""


class DuplicateContractError(ContractError):
    """Raised when a contract name is reused with a different definition."""

    def __init__(self, message: str, group: str = None, name: str = None):
        super().__init__(message)
        self.group = group
        self.name = name


class ContractNotFoundError(ContractError, LookupError):
    """Raised when a group, contract name or version is not registered."""

    def __init__(self, message: str, group: str = None, name: str = None, version: int = None):
        super().__init__(message)
        self.group = group
        self.name = name
        self.version = version


class RegistrySealedError(ContractError):
    """Raised on registration after the registry has been sealed."""


@dataclass(frozen=True)
class Contract:
    """A named, versioned binding of a Schema to an export group."""
    name: str
    schema: Schema
    export_group: str
    version: int = 1
    coerce: bool = False
    description: str = ""

    def validate(self, value: Any, *, json_decoded: bool = False) -> ValidationResult:
        return validate(self, value, json_decoded=json_decoded)

    def cast(self, value: Any) -> Any:
        return cast(self, value)

    def defines(self, schema: Schema, coerce: bool) -> bool:
        """True if this contract validates exactly like (schema, coerce)."""
        return self.schema == schema and self.coerce == bool(coerce)


class ContractGroup(MappingABC):
    """
    Read-only mapping of contract name -> Contract, tagged with an export name.

    Holds the latest version of each contract.
    """

    def __init__(self, export_name: str, contracts: Mapping[str, Contract]):
        self.export_name = export_name
        self._contracts = MappingProxyType(dict(contracts))

    def __getitem__(self, name: str) -> Contract:
        return self._contracts[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._contracts)

    def __len__(self) -> int:
        return len(self._contracts)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ContractGroup):
            return NotImplemented
        return self.export_name == other.export_name and dict(self) == dict(other)

    __hash__ = None

    def __repr__(self) -> str:
        return f"ContractGroup({self.export_name!r}, {list(self._contracts)})"


def merge_groups(*groups: ContractGroup, export_name: str = None) -> ContractGroup:
    """
    Combine groups into one, e.g. a request group and a response group.

    A name present in more than one group is allowed only when the contracts
    validate identically; the first occurrence is kept.

    Raises:
        ValueError: If no groups are given
        DuplicateContractError: On a name collision with differing contracts
    """
    if not groups:
        raise ValueError("merge requires at least one group")

    merged: Dict[str, Contract] = {}
    for group in groups:
        for name, contract in group.items():
            existing = merged.get(name)
            if existing is None:
                merged[name] = contract
            elif not existing.defines(contract.schema, contract.coerce):
                raise DuplicateContractError(
                    f"Contract '{name}' is defined differently in "
                    f"'{existing.export_group}' and '{contract.export_group}'",
                    group=contract.export_group,
                    name=name,
                )

    if export_name is None:
        export_name = "+".join(group.export_name for group in groups)
    return ContractGroup(export_name, merged)


# group -> name -> (v1, v2, ...)
_Snapshot = Mapping[str, Mapping[str, Tuple[Contract, ...]]]


class ContractRegistry:
    """
    Versioned, grouped contract store.

    Usage:
        registry = ContractRegistry()
        registry.register("users", "CreateUserRequest", CREATE_USER)
        contract = registry.get("users", "CreateUserRequest")
        body = contract.cast(request_json)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot: _Snapshot = MappingProxyType({})
        self._sealed = False

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def register(
        self,
        group: str,
        name: str,
        schema: Schema,
        *,
        coerce: bool = False,
        description: str = "",
    ) -> Contract:
        """
        Register a contract at version 1.

        Re-registering a definition already held under this name returns the
        existing Contract, so repeated module initialization is harmless.

        Raises:
            DuplicateContractError: If the name exists (in any group) with a
                different schema or coerce mode
            RegistrySealedError: If the registry has been sealed
        """
        _check_identifiers(group, name)
        _check_schema(schema)

        with self._lock:
            self._ensure_writable()
            snapshot = self._snapshot

            existing = self._resolve_registration(snapshot, group, name, schema, coerce)
            if existing is not None:
                return existing

            contract = Contract(
                name=name,
                schema=schema,
                export_group=group,
                version=1,
                coerce=bool(coerce),
                description=description,
            )
            self._snapshot = _with_histories(snapshot, group, {name: (contract,)})

        logger.debug(
            f"Registered contract {group}/{name} v1",
            extra={"event": "contract_registered", "group": group, "contract": name, "version": 1},
        )
        return contract

    def define_contracts(
        self,
        group: str,
        schemas: Mapping[str, Schema],
        *,
        coerce: bool = False,
    ) -> ContractGroup:
        """
        Register several contracts into one group as a single atomic publish.

        Either every contract becomes visible at once or, if any name
        conflicts, none does.

        Returns:
            The ContractGroup holding the contracts just defined

        Raises:
            DuplicateContractError: If any name conflicts
        """
        if not schemas:
            raise ValueError(f"define_contracts('{group}') requires at least one schema")

        for name, schema in schemas.items():
            _check_identifiers(group, name)
            _check_schema(schema)

        with self._lock:
            self._ensure_writable()
            snapshot = self._snapshot

            defined: Dict[str, Contract] = {}
            new_histories: Dict[str, Tuple[Contract, ...]] = {}
            for name, schema in schemas.items():
                existing = self._resolve_registration(snapshot, group, name, schema, coerce)
                if existing is not None:
                    defined[name] = existing
                    continue
                contract = Contract(
                    name=name,
                    schema=schema,
                    export_group=group,
                    version=1,
                    coerce=bool(coerce),
                )
                defined[name] = contract
                new_histories[name] = (contract,)

            if new_histories:
                self._snapshot = _with_histories(snapshot, group, new_histories)

        logger.debug(
            f"Defined {len(new_histories)} new contract(s) in group '{group}'",
            extra={"event": "contracts_defined", "group": group, "contracts": list(new_histories)},
        )
        return ContractGroup(group, defined)

    def register_new_version(
        self,
        group: str,
        name: str,
        new_schema: Schema,
        *,
        coerce: Optional[bool] = None,
        description: Optional[str] = None,
    ) -> Contract:
        """
        Publish a new version of an existing contract.

        Previous versions stay addressable via get(group, name, version).
        coerce and description default to the previous version's values.
        If new_schema matches the latest version, the latest is returned and
        nothing is published. Matching an older version publishes it again
        as a new version (a rollback).

        Raises:
            ContractNotFoundError: If there is no previous version
            RegistrySealedError: If the registry has been sealed
        """
        _check_identifiers(group, name)
        _check_schema(new_schema)

        with self._lock:
            self._ensure_writable()
            snapshot = self._snapshot
            history = snapshot.get(group, {}).get(name)
            if not history:
                raise ContractNotFoundError(
                    f"Cannot version '{name}': not registered in group '{group}'",
                    group=group,
                    name=name,
                )

            latest = history[-1]
            coerce = latest.coerce if coerce is None else bool(coerce)
            if latest.defines(new_schema, coerce):
                return latest

            contract = Contract(
                name=name,
                schema=new_schema,
                export_group=group,
                version=latest.version + 1,
                coerce=coerce,
                description=latest.description if description is None else description,
            )
            self._snapshot = _with_histories(snapshot, group, {name: history + (contract,)})

        logger.debug(
            f"Registered contract {group}/{name} v{contract.version}",
            extra={
                "event": "contract_versioned",
                "group": group,
                "contract": name,
                "version": contract.version,
            },
        )
        return contract

    def seal(self) -> None:
        """Reject all further registration. Call once startup is complete."""
        with self._lock:
            self._sealed = True
        logger.info(
            f"Contract registry sealed with {len(self.list_contracts())} contract(s)",
            extra={"event": "contract_registry_sealed"},
        )

    @property
    def sealed(self) -> bool:
        return self._sealed

    # ------------------------------------------------------------------
    # Reads (lock-free)
    # ------------------------------------------------------------------

    def get(self, group: str, name: str, version: Optional[int] = None) -> Contract:
        """
        Get a contract, by default its highest version.

        Raises:
            ContractNotFoundError: If the group, name or version is absent
            TypeError: If version is not an int
        """
        history = self._snapshot.get(group, {}).get(name)
        if not history:
            raise ContractNotFoundError(
                f"No contract '{name}' in group '{group}'",
                group=group,
                name=name,
                version=version,
            )
        if version is None:
            return history[-1]
        if isinstance(version, bool) or not isinstance(version, int):
            raise TypeError(f"version must be an int, got {type(version).__name__}")
        # Versions are contiguous from 1
        if 1 <= version <= len(history):
            return history[version - 1]
        raise ContractNotFoundError(
            f"Contract '{group}/{name}' has no version {version} "
            f"(available: 1..{len(history)})",
            group=group,
            name=name,
            version=version,
        )

    def versions(self, group: str, name: str) -> Tuple[int, ...]:
        """Available version numbers for a contract, ascending."""
        return tuple(contract.version for contract in self._history(group, name))

    def group(self, export_name: str) -> ContractGroup:
        """
        Get a group holding the latest version of each of its contracts.

        Raises:
            ContractNotFoundError: If the group is not registered
        """
        contracts = self._snapshot.get(export_name)
        if contracts is None:
            raise ContractNotFoundError(
                f"No contract group '{export_name}'", group=export_name
            )
        return ContractGroup(
            export_name, {name: history[-1] for name, history in contracts.items()}
        )

    def groups(self) -> List[str]:
        """Registered export group names, in registration order."""
        return list(self._snapshot)

    def list_contracts(self, group: Optional[str] = None) -> List[Contract]:
        """Latest version of every contract, optionally limited to one group."""
        snapshot = self._snapshot
        if group is not None:
            return list(self.group(group).values())
        return [history[-1] for contracts in snapshot.values() for history in contracts.values()]

    def merge(self, *group_names: str, export_name: str = None) -> ContractGroup:
        """
        Combine registered groups into one export.

        Raises:
            ContractNotFoundError: If a group is not registered
            DuplicateContractError: On a name collision with differing contracts
        """
        return merge_groups(*(self.group(name) for name in group_names), export_name=export_name)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _history(self, group: str, name: str) -> Tuple[Contract, ...]:
        history = self._snapshot.get(group, {}).get(name)
        if not history:
            raise ContractNotFoundError(
                f"No contract '{name}' in group '{group}'", group=group, name=name
            )
        return history

    def _ensure_writable(self) -> None:
        if self._sealed:
            raise RegistrySealedError("Contract registry is sealed; register contracts at startup")

    @staticmethod
    def _resolve_registration(
        snapshot: _Snapshot, group: str, name: str, schema: Schema, coerce: bool
    ) -> Optional[Contract]:
        """
        Return the existing contract for an identical re-registration, None
        for a fresh name, or raise DuplicateContractError on a conflict.
        """
        own_history = snapshot.get(group, {}).get(name)
        if own_history:
            for contract in reversed(own_history):
                if contract.defines(schema, coerce):
                    return contract
            raise DuplicateContractError(
                f"Contract '{group}/{name}' is already registered with a different "
                f"schema; use register_new_version() to evolve it",
                group=group,
                name=name,
            )

        for other_group, contracts in snapshot.items():
            history = contracts.get(name)
            if history and not any(c.defines(schema, coerce) for c in history):
                raise DuplicateContractError(
                    f"Contract '{name}' is already registered in group "
                    f"'{other_group}' with a different schema",
                    group=group,
                    name=name,
                )
        return None


def _with_histories(
    snapshot: _Snapshot, group: str, histories: Mapping[str, Tuple[Contract, ...]]
) -> _Snapshot:
    """Copy-on-write: a new snapshot with histories replaced in one group."""
    contracts = dict(snapshot.get(group, {}))
    contracts.update(histories)
    groups = dict(snapshot)
    groups[group] = MappingProxyType(contracts)
    return MappingProxyType(groups)


def _check_identifiers(group: Any, name: Any) -> None:
    for label, value in (("group", group), ("contract name", name)):
        if not isinstance(value, str) or not value:
            raise ValueError(f"{label} must be a non-empty string, got {value!r}")


def _check_schema(schema: Any) -> None:
    if not isinstance(schema, Schema):
        raise TypeError(f"Expected a Schema, got {type(schema).__name__}")
