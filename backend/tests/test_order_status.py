# backend/tests/test_order_status.py
import pytest

from tienda.schemas.order_schema import Order, OrderStatus
from tienda.services import order_status
from tienda.services.order_status import (
    can_cancel_order,
    can_pay_order,
    can_transition,
    get_status_description,
    get_status_icon,
    get_status_label,
    get_status_severity,
)


def test_every_status_has_every_table_entry():
    for table in (order_status.TRANSITIONS, order_status.STATUS_LABELS, order_status.STATUS_SEVERITIES,
                  order_status.STATUS_ICONS, order_status.STATUS_DESCRIPTIONS):
        assert set(table) == set(OrderStatus)


@pytest.mark.parametrize("status, cancellable", [
    ("pendiente_pago", True),
    ("pendiente", True),
    ("confirmado", False),
    ("procesando", False),
    ("enviado", False),
    ("entregado", False),
    ("pago_fallido", False),
    ("cancelado", False),
])
def test_can_cancel_order(status, cancellable):
    assert can_cancel_order(status) is cancellable
    assert can_cancel_order(Order(id=1, status=status)) is cancellable


def test_can_pay_only_unpaid_orders():
    payable = {s for s in OrderStatus if can_pay_order(s)}

    assert payable == {OrderStatus.PENDIENTE_PAGO, OrderStatus.PAGO_FALLIDO}


@pytest.mark.parametrize("current, target, allowed", [
    ("pendiente_pago", "pendiente", True),
    ("pendiente_pago", "enviado", False),
    ("procesando", "enviado", True),
    ("enviado", "cancelado", False),
    ("pago_fallido", "pendiente_pago", True),
    ("entregado", "cancelado", False),
    ("cancelado", "pendiente", False),
])
def test_transitions(current, target, allowed):
    assert can_transition(current, target) is allowed


def test_terminal_states_have_no_exits():
    assert order_status.TRANSITIONS[OrderStatus.ENTREGADO] == frozenset()
    assert order_status.TRANSITIONS[OrderStatus.CANCELADO] == frozenset()


def test_presentation_lookups():
    assert get_status_label("pendiente") == "Pagado - Preparando Envío"
    assert get_status_severity(OrderStatus.PAGO_FALLIDO) == "danger"
    assert get_status_icon("enviado") == "pi pi-send"
    assert get_status_description("cancelado") == "Esta orden ha sido cancelada"


def test_unknown_status_falls_back():
    assert get_status_label("reembolsado") == "reembolsado"
    assert get_status_severity("reembolsado") == "secondary"
    assert get_status_icon("reembolsado") == "pi pi-info-circle"
    assert get_status_description("reembolsado") == "Estado de la orden"
    assert can_cancel_order("reembolsado") is False
    assert can_transition("reembolsado", "pendiente") is False
