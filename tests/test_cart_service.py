from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import update

from storefront.data.models.cart import CartModel
from storefront.domain.exceptions import ConflictError, NotFoundError, ValidationError
from storefront.services.cart_service import CartService


@pytest.fixture
def catalog(seed):
    category = seed.category()
    return SimpleNamespace(
        product=seed.product(category, price="100.00"),
        other=seed.product(category, price="40.00"),
        inactive=seed.product(category, price="10.00", is_active=False),
    )


def test_get_creates_empty_cart(session, seed):
    user = seed.user()

    cart = CartService(session).get(user.id)

    assert cart.user_id == user.id
    assert cart.items == []
    assert cart.subtotal == Decimal("0")
    assert cart.total_items == 0


def test_adding_same_product_twice_merges_lines(session, seed, catalog):
    user = seed.user()
    svc = CartService(session)

    svc.add(user.id, catalog.product.id, quantity=2)
    item = svc.add(user.id, catalog.product.id, quantity=3)

    cart = svc.get(user.id)
    assert len(cart.items) == 1
    assert cart.items[0].id == item.id
    assert item.quantity == 5
    assert cart.total_items == 5
    assert cart.subtotal == Decimal("500.00")


def test_variant_lines_are_separate_and_use_variant_price(session, seed, catalog):
    user = seed.user()
    variant = seed.variant(catalog.product, price="150.00")
    svc = CartService(session)

    svc.add(user.id, catalog.product.id, quantity=1)
    line = svc.add(user.id, catalog.product.id, variant_id=variant.id, quantity=2)

    assert line.unit_price == Decimal("150.00")
    assert line.line_total == Decimal("300.00")

    cart = svc.get(user.id)
    assert len(cart.items) == 2
    assert cart.subtotal == Decimal("400.00")


def test_add_rejects_inactive_product(session, seed, catalog):
    user = seed.user()

    with pytest.raises(NotFoundError):
        CartService(session).add(user.id, catalog.inactive.id)


def test_add_rejects_missing_product(session, seed):
    user = seed.user()

    with pytest.raises(NotFoundError):
        CartService(session).add(user.id, 999)


def test_add_rejects_variant_of_another_product(session, seed, catalog):
    user = seed.user()
    foreign_variant = seed.variant(catalog.other)

    with pytest.raises(NotFoundError):
        CartService(session).add(user.id, catalog.product.id, variant_id=foreign_variant.id)


def test_add_rejects_inactive_variant(session, seed, catalog):
    user = seed.user()
    variant = seed.variant(catalog.product, is_active=False)

    with pytest.raises(NotFoundError):
        CartService(session).add(user.id, catalog.product.id, variant_id=variant.id)


def test_add_rejects_non_positive_quantity(session, seed, catalog):
    user = seed.user()

    with pytest.raises(ValidationError):
        CartService(session).add(user.id, catalog.product.id, quantity=0)


def test_update_quantity(session, seed, catalog):
    user = seed.user()
    svc = CartService(session)
    item = svc.add(user.id, catalog.product.id)

    updated = svc.update_quantity(user.id, item.id, 4)

    assert updated.quantity == 4
    assert svc.get(user.id).subtotal == Decimal("400.00")


@pytest.mark.parametrize("quantity", [0, -1])
def test_update_quantity_below_one_is_rejected(session, seed, catalog, quantity):
    user = seed.user()
    svc = CartService(session)
    item = svc.add(user.id, catalog.product.id, quantity=2)

    with pytest.raises(ValidationError):
        svc.update_quantity(user.id, item.id, quantity)

    assert svc.get(user.id).items[0].quantity == 2


def test_items_of_another_user_are_not_found(session, seed, catalog):
    owner = seed.user()
    stranger = seed.user()
    svc = CartService(session)
    item = svc.add(owner.id, catalog.product.id)

    with pytest.raises(NotFoundError):
        svc.update_quantity(stranger.id, item.id, 3)
    with pytest.raises(NotFoundError):
        svc.remove(stranger.id, item.id)

    assert svc.get(owner.id).items[0].quantity == 1


def test_remove_item(session, seed, catalog):
    user = seed.user()
    svc = CartService(session)
    keep = svc.add(user.id, catalog.other.id)
    gone = svc.add(user.id, catalog.product.id)

    svc.remove(user.id, gone.id)

    cart = svc.get(user.id)
    assert [i.id for i in cart.items] == [keep.id]


def test_clear_is_idempotent(session, seed, catalog):
    user = seed.user()
    svc = CartService(session)
    svc.add(user.id, catalog.product.id)
    svc.add(user.id, catalog.other.id)

    svc.clear(user.id)
    svc.clear(user.id)

    assert svc.get(user.id).items == []


def test_clear_without_cart_is_a_no_op(session, seed):
    user = seed.user()
    CartService(session).clear(user.id)


def test_every_change_bumps_the_cart_version(session, seed, catalog):
    user = seed.user()
    svc = CartService(session)

    item = svc.add(user.id, catalog.product.id)
    svc.update_quantity(user.id, item.id, 3)
    svc.remove(user.id, item.id)

    cart = svc.repo.get_cart_by_user(user.id)
    assert cart.version == 4


def test_stale_version_raises_conflict(session, database, seed, catalog):
    user = seed.user()
    svc = CartService(session)
    svc.add(user.id, catalog.product.id)
    cart = svc.repo.get_cart_by_user(user.id)
    stale_version = cart.version

    # a concurrent request commits first
    other = database.session_factory()
    other.execute(
        update(CartModel)
        .where(CartModel.id == cart.id)
        .values(version=CartModel.version + 1)
    )
    other.commit()
    other.close()

    with pytest.raises(ConflictError):
        svc._bump_version(cart, stale_version)
    session.rollback()
