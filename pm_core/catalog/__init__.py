"""
商品分类模块
"""
from .taxonomy import (
    DEFAULT_TAXONOMY,
    CategoryExpansion,
    CategoryInfo,
    CategoryKind,
    CategoryTaxonomy,
    MainCategoryInfo,
    SubCategoryInfo,
    TaxonomyError,
    normalize_category_tokens,
)

__all__ = [
    "DEFAULT_TAXONOMY",
    "CategoryExpansion",
    "CategoryInfo",
    "CategoryKind",
    "CategoryTaxonomy",
    "MainCategoryInfo",
    "SubCategoryInfo",
    "TaxonomyError",
    "normalize_category_tokens",
]
