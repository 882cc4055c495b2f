"""Farm registry: farm entries, incentive splits and stakeholder lists."""

from typing import List

from ..errors import InvalidInputError, UnauthorizedError
from ..events import FARM_CREATED
from .clock import ManualClock
from .store import FarmRegistryEntry, Store


class FarmRegistry:
    """Registered farms and their verifier / yield-yoda lists."""

    def __init__(self, store: Store, clock: ManualClock, admin: str):
        self.store = store
        self.clock = clock
        self.admin = admin

    def create_farm(
        self,
        caller: str,
        farm_id: str,
        address: str,
        owner: str,
        asset: str,
        verifier_split_pct: int,
        yoda_split_pct: int,
    ) -> FarmRegistryEntry:
        """
        Register a farm. Splits are immutable afterwards.

        Raises:
            UnauthorizedError: If caller is not the admin
            InvalidInputError: On empty ids, duplicates or bad splits
        """
        if caller != self.admin:
            raise UnauthorizedError(caller, "create farms")
        for name, value in (("farm_id", farm_id), ("address", address), ("owner", owner), ("asset", asset)):
            if not value:
                raise InvalidInputError(f"{name} must not be empty", field=name)
        if farm_id in self.store.farms:
            raise InvalidInputError(f"Farm {farm_id} already registered", field="farm_id")
        if any(entry.address == address for entry in self.store.farms.values()):
            raise InvalidInputError(f"Address {address} already used by a farm", field="address")
        for name, pct in (("verifier_split_pct", verifier_split_pct), ("yoda_split_pct", yoda_split_pct)):
            if not 0 <= pct <= 100:
                raise InvalidInputError(f"{name} must be within [0, 100], got {pct}", field=name)
        if verifier_split_pct + yoda_split_pct > 100:
            raise InvalidInputError(
                f"Splits must sum to 100 with the owner share; verifier {verifier_split_pct} "
                f"+ yoda {yoda_split_pct} exceeds 100",
                field="splits",
            )

        entry = FarmRegistryEntry(
            farm_id=farm_id,
            address=address,
            owner=owner,
            asset=asset,
            verifier_split_pct=verifier_split_pct,
            yoda_split_pct=yoda_split_pct,
        )
        self.store.farms[farm_id] = entry
        self.store.verifiers[farm_id] = []
        self.store.yodas[farm_id] = []
        self.store.events.emit(
            FARM_CREATED, self.clock.now(),
            farm_id=farm_id, address=address, owner=owner, asset=asset,
            verifier_split_pct=verifier_split_pct, yoda_split_pct=yoda_split_pct,
        )
        return entry

    def lookup(self, farm_id: str) -> FarmRegistryEntry:
        try:
            return self.store.farms[farm_id]
        except KeyError:
            raise InvalidInputError(f"Unknown farm {farm_id}", field="farm_id") from None

    def is_registered_caller(self, farm_id: str, caller: str) -> bool:
        """True if ``caller`` is the farm's own address or the root farm's address."""
        entry = self.store.farms.get(farm_id)
        if entry is not None and entry.address == caller:
            return True
        root_id = self.store.root_farm_id
        return root_id is not None and self.store.farms[root_id].address == caller

    def set_root_farm(self, caller: str, farm_id: str) -> None:
        if caller != self.admin:
            raise UnauthorizedError(caller, "set the root farm")
        self.lookup(farm_id)
        self.store.root_farm_id = farm_id

    @property
    def root_farm(self) -> FarmRegistryEntry:
        if self.store.root_farm_id is None:
            raise InvalidInputError("Root farm not configured", field="root_farm_id")
        return self.store.farms[self.store.root_farm_id]

    def transfer_ownership(self, caller: str, farm_id: str, new_owner: str) -> None:
        entry = self._require_owner(caller, farm_id, "transfer ownership")
        if not new_owner:
            raise InvalidInputError("New owner must not be empty", field="new_owner")
        entry.owner = new_owner

    # --------------------------------------------------------- stakeholders

    def verifiers(self, farm_id: str) -> List[str]:
        return list(self.store.verifiers.get(farm_id, []))

    def yodas(self, farm_id: str) -> List[str]:
        return list(self.store.yodas.get(farm_id, []))

    def add_verifier(self, caller: str, farm_id: str, address: str) -> None:
        self._add_member(self.store.verifiers, caller, farm_id, address, "verifier")

    def remove_verifier(self, caller: str, farm_id: str, address: str) -> None:
        self._remove_member(self.store.verifiers, caller, farm_id, address, "verifier")

    def add_yoda(self, caller: str, farm_id: str, address: str) -> None:
        self._add_member(self.store.yodas, caller, farm_id, address, "yoda")

    def remove_yoda(self, caller: str, farm_id: str, address: str) -> None:
        self._remove_member(self.store.yodas, caller, farm_id, address, "yoda")

    def _add_member(self, table, caller, farm_id, address, role):
        self._require_owner(caller, farm_id, f"add {role}s")
        if not address:
            raise InvalidInputError(f"{role} address must not be empty", field="address")
        members = table[farm_id]
        if address in members:
            raise InvalidInputError(f"{address} is already a {role} of {farm_id}", field="address")
        members.append(address)

    def _remove_member(self, table, caller, farm_id, address, role):
        self._require_owner(caller, farm_id, f"remove {role}s")
        members = table[farm_id]
        if address not in members:
            raise InvalidInputError(f"{address} is not a {role} of {farm_id}", field="address")
        members.remove(address)

    def _require_owner(self, caller: str, farm_id: str, action: str) -> FarmRegistryEntry:
        entry = self.lookup(farm_id)
        if caller not in (entry.owner, self.admin):
            raise UnauthorizedError(caller, action)
        return entry
