"""
Извлечение обязательных полей из ITN-запроса PayFast.

Порядок полей сохраняется в точности как в запросе: подпись считается по
упорядоченной конкатенации, поэтому используется кортеж пар, а не словарь.
"""
from typing import Iterable, Mapping, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict
from payments.exceptions import MissingFieldsError

# (каноническое имя, имя параметра в запросе PayFast) - порядок проверки фиксирован
REQUIRED_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("order_reference", "m_payment_id"),
    ("gateway_payment_id", "pf_payment_id"),
    ("payment_status", "payment_status"),
    ("item_name", "item_name"),
)

Params = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def _as_pairs(params: Params) -> Tuple[Tuple[str, str], ...]:
    if hasattr(params, "multi_items"):
        # starlette QueryParams / FormData: повторяющиеся ключи тоже сохраняем
        items = params.multi_items()
    elif isinstance(params, Mapping):
        items = params.items()
    else:
        items = params
    return tuple((str(key), str(value)) for key, value in items)


class NotificationFields(BaseModel):
    """Поля уведомления в порядке получения + доступ к обязательным значениям."""

    model_config = ConfigDict(frozen=True)

    pairs: Tuple[Tuple[str, str], ...]
    order_reference: str
    gateway_payment_id: str
    payment_status: str
    item_name: str

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Первое значение параметра с указанным именем."""
        for key, value in self.pairs:
            if key == name:
                return value
        return default

    @property
    def signature(self) -> Optional[str]:
        return self.get("signature")

    def order_number(self, prefix: str) -> str:
        """Номер заказа из item_name без префикса (например, 'Order1001' -> '1001')."""
        if prefix and self.item_name.startswith(prefix):
            return self.item_name[len(prefix):]
        return self.item_name

    def describe(self) -> str:
        # Только обязательные поля: полную строку с подписью в лог не пишем
        return (
            f"order_reference={self.order_reference}, "
            f"gateway_payment_id={self.gateway_payment_id}, "
            f"payment_status={self.payment_status}, "
            f"item_name={self.item_name}"
        )


def extract_fields(params: Params) -> NotificationFields:
    """
    Собирает NotificationFields из параметров запроса.

    Args:
        params: упорядоченные пары (ключ, значение), Mapping или starlette QueryParams/FormData

    Returns:
        NotificationFields

    Raises:
        MissingFieldsError: если отсутствует (или пусто) хотя бы одно обязательное поле;
            в ошибке перечислены все отсутствующие поля
    """
    pairs = _as_pairs(params)

    found = {}
    for key, value in pairs:
        if key not in found:
            found[key] = value

    values = {}
    missing = []
    missing_params = []
    for name, param in REQUIRED_FIELDS:
        value = found.get(param, "")
        if value == "":
            missing.append(name)
            missing_params.append(param)
        else:
            values[name] = value

    if missing:
        raise MissingFieldsError(missing, missing_params)

    return NotificationFields(pairs=pairs, **values)
