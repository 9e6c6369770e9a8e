"""Topic matching over lexicon entries.

The keyword table maps a topic label to curated headwords. It is plain
configuration: pass a different mapping (or load one from JSON) to match
other topics.
"""

import logging
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from hanzilex.utils.file_io import read_json
from hanzilex.validators.schema import MergedEntry

logger = logging.getLogger(__name__)

DEFAULT_TOPIC_KEYWORDS: Dict[str, List[str]] = {
    "Food": ["食物", "菜", "饭", "吃", "餐厅", "厨房", "味道", "营养", "健康", "水果", "蔬菜", "肉类", "海鲜", "饮料", "咖啡", "茶", "酒", "甜点", "零食"],
    "Travel": ["旅行", "旅游", "飞机", "火车", "酒店", "景点", "导游", "护照", "签证", "机场", "车站", "地图", "行李", "相机", "纪念品", "风景", "文化"],
    "Technology": ["科技", "电脑", "手机", "软件", "网络", "数据", "信息", "互联网", "人工智能", "程序", "系统", "设备", "技术", "创新", "数字", "智能"],
    "Business": ["商业", "公司", "经济", "贸易", "金融", "投资", "市场", "企业", "管理", "销售", "营销", "客户", "产品", "服务", "利润", "竞争", "合作"],
    "Environment": ["环境", "自然", "保护", "污染", "气候", "生态", "绿色", "可持续发展", "能源", "资源", "森林", "海洋", "动物", "植物", "地球"],
    "Education": ["教育", "学习", "学校", "大学", "老师", "学生", "课程", "知识", "技能", "考试", "成绩", "研究", "学术", "文化", "语言", "科学"],
    "Health": ["健康", "医疗", "医生", "医院", "治疗", "药物", "疾病", "预防", "营养", "运动", "休息", "心理", "身体", "检查", "康复"],
    "Sports": ["运动", "体育", "比赛", "训练", "团队", "胜利", "失败", "技能", "身体", "健康", "竞争", "合作", "教练", "运动员", "场地"],
    "Music": ["音乐", "歌曲", "乐器", "演奏", "歌手", "乐队", "旋律", "节奏", "艺术", "文化", "表演", "创作", "欣赏", "古典", "流行"],
    "Art": ["艺术", "绘画", "作品", "创作", "文化", "历史", "博物馆", "展览", "风格", "色彩", "设计", "美学", "传统", "现代", "表达"],
}


class TopicMatcher:
    """Selects the entries relevant to a free-text topic label."""

    def __init__(self, topic_keywords: Optional[Mapping[str, Iterable[str]]] = None):
        """Initialize matcher.

        Args:
            topic_keywords: Topic label → curated keywords
                (default: DEFAULT_TOPIC_KEYWORDS)
        """
        if topic_keywords is None:
            topic_keywords = DEFAULT_TOPIC_KEYWORDS
        self._keywords: Dict[str, FrozenSet[str]] = {
            label.strip().casefold(): frozenset(k.strip() for k in keywords if k and k.strip())
            for label, keywords in topic_keywords.items()
        }

    @classmethod
    def from_json(cls, file_path: Union[str, Path]) -> "TopicMatcher":
        """Load a {"Topic": ["keyword", ...]} table from JSON."""
        data = read_json(file_path)
        if not isinstance(data, dict):
            raise ValueError(f"Topic keyword file must be a JSON object: {file_path}")
        logger.info(f"Loaded {len(data)} topics from {file_path}")
        return cls(data)

    @property
    def topics(self) -> List[str]:
        return sorted(self._keywords)

    def keywords_for(self, topic: str) -> FrozenSet[str]:
        """Curated keywords for a topic label (case-insensitive, empty if unknown)."""
        return self._keywords.get(topic.strip().casefold(), frozenset())

    def matches(self, entry: MergedEntry, topic: str) -> bool:
        """True if the entry is relevant to ``topic``.

        An entry matches when its headword is a curated keyword, when its gloss
        contains the topic label, or when its gloss contains any keyword
        (both case-insensitive).
        """
        return self._matches(entry, topic.strip().casefold(), self.keywords_for(topic))

    def filter(self, entries: Iterable[MergedEntry], topic: str) -> List[MergedEntry]:
        """Matching entries, in input order."""
        label = topic.strip().casefold()
        keywords = self.keywords_for(topic)
        return [entry for entry in entries if self._matches(entry, label, keywords)]

    @staticmethod
    def _matches(entry: MergedEntry, label: str, keywords: FrozenSet[str]) -> bool:
        if entry.headword in keywords:
            return True
        gloss = entry.gloss.casefold()
        if not gloss:
            return False
        if label and label in gloss:
            return True
        return any(keyword.casefold() in gloss for keyword in keywords)
