import logging
from typing import List, Optional

from storefront.client.api import StorefrontClient
from storefront.client.errors import StorefrontError
from storefront.schemas.address_schemas import AddressCreate, AddressRead, AddressUpdate

logger = logging.getLogger(__name__)


class AddressBook:
    """Local copy of the customer's saved addresses.

    Default changes are applied locally first and rolled back if the server
    refuses them; the server answer is authoritative.
    """

    def __init__(self, client: StorefrontClient):
        self.client = client
        self.addresses: List[AddressRead] = []

    def refresh(self) -> List[AddressRead]:
        self.addresses = self.client.list_addresses()
        return self.addresses

    def get(self, address_id: int) -> Optional[AddressRead]:
        for address in self.addresses:
            if address.id == address_id:
                return address
        return None

    @property
    def default(self) -> Optional[AddressRead]:
        for address in self.addresses:
            if address.is_default:
                return address
        return None

    def preferred(self) -> Optional[AddressRead]:
        """Address to preselect at checkout: the default, else the first one."""
        return self.default or (self.addresses[0] if self.addresses else None)

    def _mark_default(self, address_id: int):
        self.addresses = [
            a.model_copy(update={"is_default": a.id == address_id})
            for a in self.addresses
        ]

    def _replace(self, record: AddressRead):
        self.addresses = [record if a.id == record.id else a for a in self.addresses]

    def add(self, data: AddressCreate) -> AddressRead:
        created = self.client.create_address(data)
        self.addresses.append(created)
        if created.is_default:
            self._mark_default(created.id)
        return created

    def update(self, address_id: int, data: AddressUpdate) -> AddressRead:
        updated = self.client.update_address(address_id, data)
        self._replace(updated)
        if updated.is_default:
            self._mark_default(updated.id)
        return updated

    def remove(self, address_id: int):
        self.client.delete_address(address_id)
        # the server may have promoted another address to default
        self.refresh()

    def set_default(self, address_id: int) -> AddressRead:
        snapshot = list(self.addresses)
        self._mark_default(address_id)

        try:
            confirmed = self.client.set_default_address(address_id)
        except StorefrontError:
            logger.warning(f"Setting default address {address_id} failed, rolling back")
            self.addresses = snapshot
            raise

        self._replace(confirmed)
        return confirmed
