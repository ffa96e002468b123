from __future__ import annotations


def normalize_isbn(value: str | None) -> str | None:
    # 去掉连字符与空格，统一大写（ISBN-10 校验位可能是 X）
    if value is None:
        return None
    cleaned = value.replace("-", "").replace(" ", "").upper()
    return cleaned or None
