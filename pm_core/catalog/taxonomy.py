"""
商品分类表
两级分类（主分类 -> 子分类），启动时构建一次，运行期只读。

- classify: 判断一个分类名是主分类、子分类还是未知
- expand: 把请求中的分类名展开为用于过滤商品的主分类集合和子分类集合
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union


class CategoryKind(str, Enum):
    """分类层级"""
    main = "main"
    sub = "sub"


@dataclass(frozen=True)
class MainCategoryInfo:
    """主分类索引项"""
    subcategories: Tuple[str, ...]
    kind: CategoryKind = CategoryKind.main


@dataclass(frozen=True)
class SubCategoryInfo:
    """子分类索引项"""
    parent: str
    kind: CategoryKind = CategoryKind.sub


CategoryInfo = Union[MainCategoryInfo, SubCategoryInfo]
TaxonomyEntry = Tuple[str, Sequence[str]]


# 默认分类表（顺序即前端展示顺序）
DEFAULT_TAXONOMY: Tuple[TaxonomyEntry, ...] = (
    ("Clothes", ("Costumes", "Hats", "Socks")),
    ("Toys", ("String Toys", "Balls", "Catnip Toys", "Plush Toys", "Laser Pointers")),
    ("Accessories", ("Collars", "Leashes", "Harnesses", "Bow Ties", "Carriers")),
    ("Furniture", ("Beds", "Trees", "Scratching Posts", "Window Perches")),
    ("Food", ("Dry Food", "Wet Food", "Grain-Free Food", "Dental Treats", "Catnip")),
    ("Health", ("Vitamins", "Supplements", "Flea Prevention", "Tick Prevention")),
    ("Grooming", ("Brushes", "Combs", "Nail Clippers", "Shampoos", "Conditioners", "Ear Cleaners", "Dental Care")),
    ("Litter", ("Litter Boxes", "Litter Mats", "Litter Scoops", "Odor Control")),
)


class TaxonomyError(ValueError):
    """分类表配置非法"""


@dataclass(frozen=True)
class CategoryExpansion:
    """分类展开结果"""
    main_categories: FrozenSet[str] = frozenset()
    sub_categories: FrozenSet[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        """为空表示不做分类过滤（而不是匹配不到任何商品）"""
        return not self.main_categories and not self.sub_categories

    def to_query(self) -> Dict[str, List[str]]:
        """
        转换为查询描述

        两个字段相互独立，集合为空时对应字段整体省略。

        Returns:
            {"category": [...], "sub_category": [...]}，值已排序
        """
        query: Dict[str, List[str]] = {}
        if self.main_categories:
            query["category"] = sorted(self.main_categories)
        if self.sub_categories:
            query["sub_category"] = sorted(self.sub_categories)
        return query


class CategoryTaxonomy:
    """不可变的两级分类表"""

    def __init__(self, entries: Iterable[TaxonomyEntry] = DEFAULT_TAXONOMY):
        """
        构建分类表和分类索引

        Args:
            entries: (主分类, [子分类...]) 有序列表

        Raises:
            TaxonomyError: 名称为空、主分类重复、子分类重复或与主分类重名
        """
        normalized: List[Tuple[str, Tuple[str, ...]]] = []
        index: Dict[str, CategoryInfo] = {}

        for entry in entries:
            try:
                main, subs = entry
            except (TypeError, ValueError):
                raise TaxonomyError(f"Invalid taxonomy entry: {entry!r}")

            self._check_name(main)
            if isinstance(subs, str):
                raise TaxonomyError(f"Subcategories of '{main}' must be a list, not a string")
            subs = tuple(subs)
            if main in index:
                raise TaxonomyError(f"Duplicate category name: '{main}'")
            index[main] = MainCategoryInfo(subcategories=subs)

            for sub in subs:
                self._check_name(sub)
                if sub in index:
                    raise TaxonomyError(f"Duplicate category name: '{sub}'")
                index[sub] = SubCategoryInfo(parent=main)

            normalized.append((main, subs))

        self._entries: Tuple[Tuple[str, Tuple[str, ...]], ...] = tuple(normalized)
        self._index: Mapping[str, CategoryInfo] = MappingProxyType(index)

    @staticmethod
    def _check_name(name: Any) -> None:
        if not isinstance(name, str) or not name.strip():
            raise TaxonomyError(f"Category names must be non-empty strings, got {name!r}")

    @property
    def entries(self) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
        return self._entries

    @property
    def index(self) -> Mapping[str, CategoryInfo]:
        return self._index

    @property
    def main_categories(self) -> Tuple[str, ...]:
        return tuple(main for main, _ in self._entries)

    def subcategories_of(self, main_category: str) -> Tuple[str, ...]:
        info = self.classify(main_category)
        if isinstance(info, MainCategoryInfo):
            return info.subcategories
        return ()

    def classify(self, token: Any) -> Optional[CategoryInfo]:
        """判断分类名类型，未知名称返回 None（不抛异常）"""
        if not isinstance(token, str):
            return None
        return self._index.get(token)

    def expand(self, tokens: Optional[Iterable[str]]) -> CategoryExpansion:
        """
        把请求的分类名展开为主分类集合和子分类集合

        - 未知名称直接忽略
        - 主分类加入主分类集合
        - 子分类加入子分类集合，同时把其父分类加入主分类集合

        结果与输入顺序和重复无关。

        Args:
            tokens: 请求中的分类名，None 视为空

        Returns:
            CategoryExpansion
        """
        main_categories = set()
        sub_categories = set()

        for token in tokens or ():
            info = self.classify(token)
            if info is None:
                continue
            if isinstance(info, MainCategoryInfo):
                main_categories.add(token)
            else:
                sub_categories.add(token)
                main_categories.add(info.parent)

        return CategoryExpansion(
            main_categories=frozenset(main_categories),
            sub_categories=frozenset(sub_categories),
        )

    def to_dict(self) -> List[Dict[str, Any]]:
        """分类表的可序列化形式"""
        return [
            {"name": main, "subcategories": list(subs)}
            for main, subs in self._entries
        ]

    def __contains__(self, token: object) -> bool:
        return self.classify(token) is not None

    def __len__(self) -> int:
        return len(self._index)


def normalize_category_tokens(value: Union[None, str, Iterable[Any]]) -> List[str]:
    """
    规范化查询参数中的分类值

    单个字符串和字符串列表都转换为列表，None 转为空列表，非字符串成员丢弃。
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [item for item in value if isinstance(item, str)]
