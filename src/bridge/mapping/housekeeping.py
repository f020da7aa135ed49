"""Mapping housekeeping — purge records once their order has settled.

Off unless PURGE_MAPPING_ON_SETTLE is set. A purged record is simply
recreated as a placeholder if the processor notifies again.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from bridge.domain import bridge
from bridge.mapping.events import OrderSettled
from bridge.mapping.mapping import InvoiceMapping
from bridge.settings import get_settings

logger = structlog.get_logger(__name__)


@bridge.event_handler(part_of=InvoiceMapping)
class SettledMappingPurger:
    @handle(OrderSettled)
    def on_order_settled(self, event: OrderSettled) -> None:
        if not get_settings().purge_mapping_on_settle:
            return

        repo = current_domain.repository_for(InvoiceMapping)
        for alias in dict.fromkeys(a for a in (event.order_ref, event.order_name) if a):
            repo.delete_mapping(alias)
        logger.info("mapping_purged", order_ref=event.order_ref)
