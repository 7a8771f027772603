# backend/tienda/services/order_status.py
"""
Tablas de estados de una orden.

La tabla de transiciones y las cuatro tablas de presentación (etiqueta,
severidad, icono, descripción) son la única fuente de verdad sobre qué
acciones son legales en cada estado. Un estado nuevo debe añadirse a las
cinco tablas a la vez; `_check_tables()` lo verifica al importar el módulo.
"""
from typing import Dict, FrozenSet, Union

from tienda.schemas.order_schema import Order, OrderStatus

S = OrderStatus

TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    S.PENDIENTE_PAGO: frozenset({S.PENDIENTE, S.CANCELADO, S.PAGO_FALLIDO}),
    S.PENDIENTE: frozenset({S.CONFIRMADO, S.CANCELADO}),
    S.CONFIRMADO: frozenset({S.PROCESANDO, S.CANCELADO}),
    S.PROCESANDO: frozenset({S.ENVIADO, S.CANCELADO}),
    S.ENVIADO: frozenset({S.ENTREGADO}),
    S.ENTREGADO: frozenset(),
    S.PAGO_FALLIDO: frozenset({S.PENDIENTE_PAGO, S.CANCELADO}),
    S.CANCELADO: frozenset(),
}

PAYABLE_STATUSES = frozenset({S.PENDIENTE_PAGO, S.PAGO_FALLIDO})
CANCELLABLE_STATUSES = frozenset({S.PENDIENTE_PAGO, S.PENDIENTE})

STATUS_LABELS = {
    S.PENDIENTE_PAGO: "Pendiente de Pago",
    S.PENDIENTE: "Pagado - Preparando Envío",
    S.CONFIRMADO: "Confirmado",
    S.PROCESANDO: "En Preparación",
    S.ENVIADO: "Enviado",
    S.ENTREGADO: "Entregado",
    S.PAGO_FALLIDO: "Pago Fallido",
    S.CANCELADO: "Cancelado",
}

STATUS_SEVERITIES = {
    S.PENDIENTE_PAGO: "warning",
    S.PENDIENTE: "info",
    S.CONFIRMADO: "success",
    S.PROCESANDO: "info",
    S.ENVIADO: "success",
    S.ENTREGADO: "success",
    S.PAGO_FALLIDO: "danger",
    S.CANCELADO: "secondary",
}

STATUS_ICONS = {
    S.PENDIENTE_PAGO: "pi pi-clock",
    S.PENDIENTE: "pi pi-check-circle",
    S.CONFIRMADO: "pi pi-verified",
    S.PROCESANDO: "pi pi-cog",
    S.ENVIADO: "pi pi-send",
    S.ENTREGADO: "pi pi-check",
    S.PAGO_FALLIDO: "pi pi-times-circle",
    S.CANCELADO: "pi pi-ban",
}

STATUS_DESCRIPTIONS = {
    S.PENDIENTE_PAGO: "Tu orden está esperando el pago para ser procesada",
    S.PENDIENTE: "Tu pago fue exitoso. Estamos preparando tu pedido para el envío",
    S.CONFIRMADO: "Tu orden ha sido confirmada y está siendo preparada",
    S.PROCESANDO: "Tu orden está siendo preparada en nuestro almacén",
    S.ENVIADO: "Tu orden ha sido enviada y está en camino",
    S.ENTREGADO: "Tu orden ha sido entregada exitosamente",
    S.PAGO_FALLIDO: "Hubo un problema con el pago. Puedes intentar nuevamente",
    S.CANCELADO: "Esta orden ha sido cancelada",
}


def _check_tables() -> None:
    statuses = set(OrderStatus)
    for name, table in (("TRANSITIONS", TRANSITIONS), ("STATUS_LABELS", STATUS_LABELS),
                        ("STATUS_SEVERITIES", STATUS_SEVERITIES), ("STATUS_ICONS", STATUS_ICONS),
                        ("STATUS_DESCRIPTIONS", STATUS_DESCRIPTIONS)):
        if set(table) != statuses:
            raise RuntimeError(f"La tabla {name} no cubre todos los estados de orden")


_check_tables()


def _status(value: Union[Order, OrderStatus, str]):
    if isinstance(value, Order):
        return value.status
    try:
        return OrderStatus(value)
    except ValueError:
        return None


def get_status_label(status: Union[OrderStatus, str]) -> str:
    key = _status(status)
    return STATUS_LABELS[key] if key else str(status)


def get_status_severity(status: Union[OrderStatus, str]) -> str:
    key = _status(status)
    return STATUS_SEVERITIES[key] if key else "secondary"


def get_status_icon(status: Union[OrderStatus, str]) -> str:
    key = _status(status)
    return STATUS_ICONS[key] if key else "pi pi-info-circle"


def get_status_description(status: Union[OrderStatus, str]) -> str:
    key = _status(status)
    return STATUS_DESCRIPTIONS[key] if key else "Estado de la orden"


def can_transition(current: Union[OrderStatus, str], target: Union[OrderStatus, str]) -> bool:
    origin, destination = _status(current), _status(target)
    if origin is None or destination is None:
        return False
    return destination in TRANSITIONS[origin]


def can_pay_order(order: Union[Order, OrderStatus, str]) -> bool:
    return _status(order) in PAYABLE_STATUSES


def can_cancel_order(order: Union[Order, OrderStatus, str]) -> bool:
    return _status(order) in CANCELLABLE_STATUSES
