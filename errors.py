"""Исключения и предупреждения Bloom Filter."""


class ConfigurationError(ValueError):
    """Некорректные capacity / error_rate при создании фильтра."""


class CapacityExceededWarning(UserWarning):
    """Фильтр заполнен: ключ отклонен, остаток пакета не обработан."""
