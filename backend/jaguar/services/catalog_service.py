# Overview: Curated bundle lists, their public share links and storefront self-checkout.

"""
Catalog Service

Lists are created inactive and filled by sales staff. Publishing assigns a
share token once (the public URL never changes); activating makes the link
browsable. The public view only ever shows DISPONIBLE members.

Self-checkout turns a customer's selection from a public list into an
EMITIDA quotation at current base prices, without discounts. Reserving it is
still a staff action.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from ..errors import BundleUnavailableError, NotFoundError, ValidationError
from ..models import BundleState, CatalogList, CatalogListItem, InventoryBundle, ListType, Quotation
from ..repositories.base import Repositories
from ..time_utils import utcnow
from ..validation import optional_text, parse_enum, require_text
from .identifier_service import generate_unique, new_share_token
from .quotation_service import LineRequest, check_lines, issue_quotation_locked

logger = logging.getLogger(__name__)


def create_list(repos: Repositories, *, name: str, list_type, now: datetime | None = None) -> CatalogList:
    name = require_text(name, "nombre")
    kind = parse_enum(ListType, list_type, "tipo")
    now = now or utcnow()

    def _op():
        catalog = CatalogList(
            name=name,
            list_type=kind,
            is_active=False,
            share_token=None,
            created_at=now,
        )
        return repos.lists.add(catalog)

    return repos.run(_op)


def get_list(repos: Repositories, list_id: int) -> CatalogList:
    return repos.lists.require(list_id)


def list_lists(repos: Repositories, *, active_only: bool = False) -> list[CatalogList]:
    if active_only:
        return repos.lists.find(is_active=True)
    return repos.lists.find()


def add_bundle_to_list(repos: Repositories, list_id: int, bundle_id: int, *, now: datetime | None = None) -> CatalogList:
    """Append a bundle to a list. Adding a member again changes nothing."""
    now = now or utcnow()

    def _op():
        catalog = repos.lists.require(list_id, for_update=True)
        bundle = repos.bundles.require(bundle_id)
        if bundle.id in catalog.bundle_ids:
            return catalog
        if bundle.state == BundleState.SOLD:
            raise BundleUnavailableError(
                f"Bundle {bundle.id} is sold",
                details={"saco_ids": [bundle.id]},
            )

        position = max((item.position for item in catalog.items), default=-1) + 1
        catalog.items.append(CatalogListItem(
            list_id=catalog.id,
            bundle_id=bundle.id,
            bundle=bundle,
            position=position,
            added_at=now,
        ))
        return catalog

    return repos.run(_op)


def remove_bundle_from_list(repos: Repositories, list_id: int, bundle_id: int) -> CatalogList:
    def _op():
        catalog = repos.lists.require(list_id, for_update=True)
        item = next((item for item in catalog.items if item.bundle_id == bundle_id), None)
        if item is None:
            raise NotFoundError(
                f"Bundle {bundle_id} is not in list {list_id}",
                details={"lista_id": list_id, "saco_id": bundle_id},
            )
        catalog.items.remove(item)
        return catalog

    return repos.run(_op)


def set_list_active(repos: Repositories, list_id: int, is_active: bool) -> CatalogList:
    def _op():
        catalog = repos.lists.require(list_id, for_update=True)
        catalog.is_active = bool(is_active)
        return catalog

    return repos.run(_op)


def publish_share_token(repos: Repositories, list_id: int) -> CatalogList:
    """
    Give the list its public token, once.

    Re-publishing returns the list with the token it already has.

    Raises:
        DuplicateTokenError: no free token after retries
    """
    def _op():
        catalog = repos.lists.require(list_id, for_update=True)
        if catalog.share_token:
            return catalog
        catalog.share_token = generate_unique(
            new_share_token,
            lambda token: repos.lists.get_by_share_token(token) is not None,
            label="share token",
        )
        return catalog

    catalog = repos.run(_op, retry_on_conflict=True)
    logger.info("List %s published", catalog.id)
    return catalog


def _require_public_list(repos: Repositories, token: str) -> CatalogList:
    catalog = repos.lists.get_by_share_token(token) if token else None
    # Inactive lists look the same as unknown tokens from outside
    if catalog is None or not catalog.is_active:
        raise NotFoundError("Catalog not found", details={"enlace": token})
    return catalog


def get_public_catalog(repos: Repositories, token: str) -> tuple[CatalogList, list[InventoryBundle]]:
    catalog = _require_public_list(repos, token)
    available = [bundle for bundle in catalog.bundles if bundle.state == BundleState.AVAILABLE]
    return catalog, available


def checkout_from_catalog(
    repos: Repositories,
    token: str,
    *,
    customer_name: str,
    bundle_ids: Iterable[int],
    customer_phone: str | None = None,
    customer_email: str | None = None,
    now: datetime | None = None,
) -> Quotation:
    """
    Issue a quotation for bundles a customer picked from a public list.

    Raises:
        NotFoundError: unknown token or inactive list
        ValidationError: a bundle is not a member of the list
        BundleUnavailableError: a member is no longer DISPONIBLE
        EmptyQuotationError: nothing selected
    """
    lines = check_lines(LineRequest(bundle_id=bundle_id) for bundle_id in bundle_ids)
    name = require_text(customer_name, "cliente_nombre")
    phone = optional_text(customer_phone, "cliente_telefono")
    email = optional_text(customer_email, "cliente_email")
    now = now or utcnow()

    def _op():
        catalog = _require_public_list(repos, token)
        members = set(catalog.bundle_ids)
        outside = [line.bundle_id for line in lines if line.bundle_id not in members]
        if outside:
            raise ValidationError("Bundles are not in this catalog", details={"saco_ids": outside})

        unavailable = [
            line.bundle_id for line in lines
            if repos.bundles.get(line.bundle_id).state != BundleState.AVAILABLE
        ]
        if unavailable:
            raise BundleUnavailableError(
                "Some bundles are no longer available",
                details={"saco_ids": unavailable},
            )

        return issue_quotation_locked(
            repos,
            customer_name=name,
            lines=lines,
            customer_phone=phone,
            customer_email=email,
            source_list=catalog,
            now=now,
        )

    quotation = repos.run(_op, retry_on_conflict=True)
    logger.info("Storefront checkout on list %s issued quotation %s", quotation.source_list_id, quotation.id)
    return quotation
