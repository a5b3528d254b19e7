"""商品规格匹配

根据用户在商品页选择的属性值（颜色、尺码以及任意自定义属性）找出最合适的规格：

1. 全部属性完全匹配且带图片的规格
2. 全部属性完全匹配的规格
3. 部分匹配：颜色+尺码 → 同颜色（优先有货）→ 同尺码（优先有货）
4. 任意有货规格，否则第一个规格

只是对一个很小的列表做线性查找。规格对象只需要 ``options``、``stock``、
``image_url`` 属性，选项对象只需要 ``attribute_key``、``value``、``value_id``。
"""

from typing import Mapping, Optional, Sequence

COLOR_KEY = "color"
SIZE_KEY = "size"


def _normalize(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


def get_option_value(options, key: str) -> Optional[str]:
    """取规格中某个属性的（规范化后的）值"""
    if not options:
        return None
    for opt in options:
        if opt.attribute_key == key:
            return _normalize(opt.value)
    return None


def variant_has_color(variant, color: Optional[str]) -> bool:
    """规格可能有多个颜色选项，任意一个相同即视为匹配"""
    color = _normalize(color)
    if not variant.options or not color:
        return False
    return any(
        _normalize(opt.value) == color
        for opt in variant.options
        if opt.attribute_key == COLOR_KEY
    )


def _first_in_stock(variants):
    for variant in variants:
        if variant.stock > 0:
            return variant
    return variants[0] if variants else None


def find_variant_by_color_and_size(
    variants: Sequence,
    color: Optional[str],
    size: Optional[str],
):
    """按颜色和尺码查找规格（部分匹配兜底）"""
    if not variants:
        return None

    color = _normalize(color)
    size = _normalize(size)

    if color and size:
        for variant in variants:
            if variant_has_color(variant, color) and get_option_value(variant.options, SIZE_KEY) == size:
                return variant

    if color:
        color_variants = [v for v in variants if variant_has_color(v, color)]
        if color_variants:
            return _first_in_stock(color_variants)

    if size:
        size_variants = [v for v in variants if get_option_value(v.options, SIZE_KEY) == size]
        if size_variants:
            return _first_in_stock(size_variants)

    return _first_in_stock(list(variants))


def _matches_attribute(variant, key: str, selected: str) -> bool:
    option = next((opt for opt in variant.options or [] if opt.attribute_key == key), None)
    if option is None:
        return False
    # 前端可能传的是属性值ID
    if option.value_id and option.value_id == selected:
        return True
    return _normalize(option.value) == _normalize(selected)


def variant_matches(
    variant,
    color: Optional[str],
    size: Optional[str],
    other_attributes: Optional[Mapping[str, str]] = None,
) -> bool:
    """规格是否满足所有已选属性"""
    color = _normalize(color)
    size = _normalize(size)

    if color and not variant_has_color(variant, color):
        return False
    if size and get_option_value(variant.options, SIZE_KEY) != size:
        return False

    for key, selected in (other_attributes or {}).items():
        if key in (COLOR_KEY, SIZE_KEY) or selected is None:
            continue
        if not _matches_attribute(variant, key, selected):
            return False
    return True


def find_variant_by_all_attributes(
    variants: Sequence,
    color: Optional[str] = None,
    size: Optional[str] = None,
    other_attributes: Optional[Mapping[str, str]] = None,
):
    """综合所有已选属性查找最佳规格，没有规格时返回 None"""
    if not variants:
        return None

    matching = [v for v in variants if variant_matches(v, color, size, other_attributes)]

    for variant in matching:
        if variant.image_url:
            return variant
    if matching:
        return matching[0]

    if _normalize(color) or _normalize(size):
        return find_variant_by_color_and_size(variants, color, size)

    return _first_in_stock(list(variants))
