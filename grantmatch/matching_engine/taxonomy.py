"""
Korean Industry & Technology Taxonomy
=====================================

Static, hierarchical catalog of industry sectors and sub-sectors, technology
domain keyword sets, and the cross-sector relevance matrix. Everything here is
built once at import time and is read-only afterwards, so lookups are safe to
share across threads.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from .normalizer import keywords_overlap, normalize_keyword

DEFAULT_RELEVANCE = 0.3


@dataclass(frozen=True)
class SubSector:
    key: str
    name: str
    keywords: Tuple[str, ...]


@dataclass(frozen=True)
class Sector:
    key: str
    name: str
    keywords: Tuple[str, ...]
    sub_sectors: Mapping[str, SubSector]

    def all_keywords(self) -> Tuple[str, ...]:
        """Primary keywords followed by every sub-sector keyword."""
        result = list(self.keywords)
        for sub in self.sub_sectors.values():
            result.extend(sub.keywords)
        return tuple(result)


# (sector key, display name, primary keywords, [(sub key, sub name, keywords), ...])
_TAXONOMY_SOURCE = [
    ("ICT", "ICT/정보통신", ["ICT", "정보통신", "IT", "정보기술"], [
        ("AI", "인공지능", ["AI", "인공지능", "머신러닝", "딥러닝", "기계학습", "ML", "DL",
                         "자연어처리", "NLP", "컴퓨터비전"]),
        ("SOFTWARE", "소프트웨어", ["소프트웨어", "SW", "앱", "애플리케이션", "클라우드", "플랫폼",
                                "SaaS", "PaaS"]),
        ("DATA", "데이터/빅데이터", ["데이터", "빅데이터", "데이터분석", "데이터사이언스", "DB",
                                "데이터베이스"]),
        ("NETWORK", "네트워크/통신", ["네트워크", "통신", "5G", "6G", "무선통신", "이동통신", "광통신"]),
        ("SECURITY", "정보보안", ["보안", "정보보안", "사이버보안", "암호", "인증", "블록체인"]),
        ("IOT", "IoT/스마트시티", ["IoT", "사물인터넷", "스마트시티", "스마트홈", "센서", "엣지컴퓨팅"]),
        ("QUANTUM", "양자기술", ["양자", "양자기술", "양자컴퓨팅", "양자역학", "양자정보", "QUANTUM",
                              "QuantERA"]),
    ]),
    ("MANUFACTURING", "제조업", ["제조", "제조업", "생산", "공정", "MANUFACTURING"], [
        ("SMART_FACTORY", "스마트공장", ["스마트공장", "스마트제조", "디지털제조", "자동화", "MES", "ERP"]),
        ("ROBOTICS", "로봇/자동화", ["로봇", "로봇공학", "자동화", "협동로봇", "코봇", "산업로봇"]),
        ("MATERIALS", "소재/부품", ["소재", "신소재", "부품", "부품소재", "나노", "복합소재"]),
        ("ELECTRONICS", "전자/반도체", ["전자", "반도체", "디스플레이", "전자부품", "센서", "PCB"]),
        ("MACHINERY", "기계", ["기계", "기계공학", "정밀기계", "공작기계", "설비"]),
    ]),
    ("BIO_HEALTH", "바이오/헬스", ["바이오", "헬스", "의료", "생명공학", "BIO", "BIO_HEALTH", "HEALTH"], [
        ("MEDICAL_DEVICE", "의료기기", ["의료기기", "의료장비", "진단기기", "치료기기", "헬스케어"]),
        ("PHARMA", "의약/제약", ["의약", "제약", "신약", "바이오의약", "의약품"]),
        ("BIOTECH", "생명공학", ["생명공학", "바이오기술", "유전공학", "세포치료", "줄기세포"]),
        ("DIGITAL_HEALTH", "디지털헬스", ["디지털헬스", "원격의료", "u헬스", "모바일헬스", "mHealth"]),
    ]),
    ("ENERGY", "에너지", ["에너지", "전력", "발전", "ENERGY"], [
        ("RENEWABLE", "신재생에너지", ["신재생", "태양광", "풍력", "수소", "연료전지", "ESS", "에너지저장"]),
        ("ELECTRIC_VEHICLE", "전기차/배터리", ["전기차", "EV", "배터리", "이차전지", "전지", "BMS"]),
        ("SMART_GRID", "스마트그리드", ["스마트그리드", "전력망", "AMI", "마이크로그리드"]),
    ]),
    ("ENVIRONMENT", "환경", ["환경", "친환경", "그린", "ENVIRONMENT"], [
        ("CARBON_NEUTRAL", "탄소중립", ["탄소중립", "탄소저감", "CCUS", "탄소포집", "저탄소"]),
        ("WASTE", "폐기물/자원순환", ["폐기물", "자원순환", "재활용", "업사이클", "순환경제"]),
        ("WATER", "수처리/물환경", ["수처리", "정수", "하수", "물환경", "수질"]),
    ]),
    ("AGRICULTURE", "농업/식품", ["농업", "농림", "식품", "푸드테크", "AGRICULTURE"], [
        ("SMART_FARM", "스마트팜", ["스마트팜", "스마트농업", "식물공장", "정밀농업"]),
        ("FOOD_TECH", "푸드테크", ["푸드테크", "대체식품", "식품가공", "농식품"]),
    ]),
    ("MARINE", "해양수산", ["해양", "수산", "해양수산", "MARINE"], [
        ("AQUACULTURE", "양식/수산", ["양식", "수산", "스마트양식", "해양바이오"]),
        ("MARITIME", "조선/해양플랜트", ["조선", "선박", "해양플랜트", "해운", "항만"]),
        ("MARINE_RESOURCE", "해양자원", ["해양자원", "해양광물", "해양에너지", "해수담수화"]),
    ]),
    ("CONSTRUCTION", "건설", ["건설", "건축", "토목", "CONSTRUCTION"], [
        ("SMART_CONSTRUCTION", "스마트건설", ["스마트건설", "BIM", "건설자동화", "모듈러"]),
        ("INFRASTRUCTURE", "인프라/시설물", ["인프라", "시설물", "도로", "교량", "터널"]),
    ]),
    ("TRANSPORTATION", "교통/운송", ["교통", "운송", "모빌리티", "TRANSPORTATION"], [
        ("AUTONOMOUS", "자율주행", ["자율주행", "자율차", "AV", "ADAS", "커넥티드카"]),
        ("MOBILITY", "모빌리티", ["모빌리티", "마이크로모빌리티", "MaaS", "공유모빌리티"]),
        ("AVIATION", "항공우주", ["항공", "우주", "드론", "UAM", "위성"]),
    ]),
    ("DEFENSE", "방위/국방", ["방위", "국방", "방산", "군사", "안보", "국방산업", "DEFENSE"], [
        ("WEAPON_SYSTEM", "무기체계", ["무기체계", "전투체계", "군수", "병기", "전력증강"]),
        ("DEFENSE_TECH", "국방과학기술", ["국방과학기술", "국방R&D", "방위산업기술", "국방기술"]),
        ("MILITARY_ICT", "군사정보통신", ["군사통신", "군용전자", "지휘통제", "C4I", "전술통신"]),
    ]),
    ("CULTURAL", "문화/콘텐츠", [
        "문화", "콘텐츠", "문화산업", "문화예술", "CULTURAL", "CONTENT",
        "CT", "문화기술",
        "K-Culture", "K-콘텐츠",
        "문화체육관광", "미디어", "엔터테인먼트", "영상", "문화콘텐츠", "게임",
        "문화유산", "문화재", "전통문화",
    ], [
        ("CONTENT", "콘텐츠", ["콘텐츠", "게임", "방송", "영상", "웹툰", "애니메이션", "OTT", "미디어",
                             "음악", "엔터테인먼트", "K-POP", "드라마", "영화", "공연"]),
        ("CULTURAL_HERITAGE", "문화재/문화유산", ["문화재", "문화유산", "전통문화", "문화보존", "문화재보호",
                                             "유산", "박물관", "전시"]),
        ("TOURISM", "관광", ["관광", "관광산업", "문화관광", "관광콘텐츠", "K-관광", "지역관광", "체험관광"]),
        ("SPORTS", "체육/스포츠", ["체육", "스포츠", "스포츠산업", "e스포츠", "건강", "피트니스", "레저"]),
    ]),
    ("OTHER", "기타", ["기타", "복합", "융합", "OTHER"], [
        ("GENERAL", "일반", ["일반", "범용", "공통", "다분야"]),
    ]),
]


def _build_taxonomy() -> Mapping[str, Sector]:
    sectors: Dict[str, Sector] = {}
    for key, name, keywords, subs in _TAXONOMY_SOURCE:
        sub_sectors = MappingProxyType({
            sub_key: SubSector(sub_key, sub_name, tuple(sub_keywords))
            for sub_key, sub_name, sub_keywords in subs
        })
        sectors[key] = Sector(key, name, tuple(keywords), sub_sectors)
    return MappingProxyType(sectors)


INDUSTRY_TAXONOMY: Mapping[str, Sector] = _build_taxonomy()
SECTOR_KEYS: Tuple[str, ...] = tuple(INDUSTRY_TAXONOMY)
_SECTOR_INDEX: Mapping[str, int] = MappingProxyType({key: i for i, key in enumerate(SECTOR_KEYS)})

TECHNOLOGY_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    # Core technologies
    "DIGITAL_TRANSFORMATION": ("디지털전환", "DX", "디지털혁신", "디지털화"),
    "INTELLIGENT_SYSTEMS": ("지능형", "AI기반", "AI활용", "인텔리전트"),
    "AUTOMATION": ("자동화", "무인화", "스마트", "지능화"),
    # Research stages
    "BASIC_RESEARCH": ("기초연구", "원천기술", "핵심기술"),
    "APPLIED_RESEARCH": ("응용연구", "실용화", "상용화"),
    "COMMERCIALIZATION": ("사업화", "제품화", "양산", "시장진입"),
    # Innovation types
    "INNOVATION": ("혁신", "창업", "신기술", "첨단"),
    "CONVERGENCE": ("융합", "복합", "연계", "통합"),
    "COLLABORATION": ("협력", "공동", "컨소시엄", "산학협력"),
})

# Rows and columns follow SECTOR_KEYS order.
_RELEVANCE_ROWS = [
    # ICT  MFG  BIO  ENE  ENV  AGR  MAR  CON  TRA  DEF  CUL  OTH
    [1.0, 0.8, 0.7, 0.7, 0.6, 0.7, 0.6, 0.6, 0.8, 0.2, 0.3, 0.5],  # ICT
    [0.8, 1.0, 0.5, 0.6, 0.5, 0.5, 0.6, 0.6, 0.7, 0.3, 0.2, 0.5],  # MANUFACTURING
    [0.7, 0.5, 1.0, 0.3, 0.5, 0.6, 0.5, 0.3, 0.4, 0.1, 0.2, 0.5],  # BIO_HEALTH
    [0.7, 0.6, 0.3, 1.0, 0.8, 0.4, 0.5, 0.5, 0.7, 0.1, 0.2, 0.5],  # ENERGY
    [0.6, 0.5, 0.5, 0.8, 1.0, 0.6, 0.6, 0.6, 0.6, 0.0, 0.3, 0.5],  # ENVIRONMENT
    [0.7, 0.5, 0.6, 0.4, 0.6, 1.0, 0.5, 0.3, 0.3, 0.0, 0.2, 0.5],  # AGRICULTURE
    [0.6, 0.6, 0.5, 0.5, 0.6, 0.5, 1.0, 0.4, 0.5, 0.3, 0.2, 0.5],  # MARINE
    [0.6, 0.6, 0.3, 0.5, 0.6, 0.3, 0.4, 1.0, 0.5, 0.2, 0.4, 0.5],  # CONSTRUCTION
    [0.8, 0.7, 0.4, 0.7, 0.6, 0.3, 0.5, 0.5, 1.0, 0.3, 0.5, 0.5],  # TRANSPORTATION
    [0.2, 0.3, 0.1, 0.1, 0.0, 0.0, 0.3, 0.2, 0.3, 1.0, 0.1, 0.5],  # DEFENSE
    [0.3, 0.2, 0.2, 0.2, 0.3, 0.2, 0.2, 0.4, 0.5, 0.1, 1.0, 0.5],  # CULTURAL
    [0.5, 0.5, 0.5, 0.5, 0.5, 0.5, 0.5, 0.5, 0.5, 0.5, 0.5, 1.0],  # OTHER
]


def _build_relevance_matrix() -> np.ndarray:
    matrix = np.array(_RELEVANCE_ROWS, dtype=float)
    if matrix.shape != (len(SECTOR_KEYS), len(SECTOR_KEYS)):
        raise ValueError(f"Relevance matrix shape {matrix.shape} does not match taxonomy")
    if not np.array_equal(matrix, matrix.T):
        raise ValueError("Relevance matrix must be symmetric")
    matrix.flags.writeable = False
    return matrix


INDUSTRY_RELEVANCE: np.ndarray = _build_relevance_matrix()

# Normalized lookup tables, built once.
_NORMALIZED_PRIMARY: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    key: tuple(normalize_keyword(k) for k in sector.keywords)
    for key, sector in INDUSTRY_TAXONOMY.items()
})
_NORMALIZED_SUB: Mapping[str, Tuple[Tuple[str, Tuple[str, ...]], ...]] = MappingProxyType({
    key: tuple(
        (sub_key, tuple(normalize_keyword(k) for k in sub.keywords))
        for sub_key, sub in sector.sub_sectors.items()
    )
    for key, sector in INDUSTRY_TAXONOMY.items()
})
_NORMALIZED_TECH: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    domain: tuple(normalize_keyword(k) for k in keywords)
    for domain, keywords in TECHNOLOGY_KEYWORDS.items()
})


def _matches_any(normalized: str, candidates: Tuple[str, ...]) -> bool:
    return any(keywords_overlap(normalized, candidate) for candidate in candidates)


def resolve_sector(text: Optional[str]) -> Optional[str]:
    """
    Resolve free text to a taxonomy sector key.

    A direct sector-key match wins ("MANUFACTURING"); otherwise the first sector,
    in table order, whose primary or sub-sector keywords overlap the text.
    """
    normalized = normalize_keyword(text)
    if not normalized:
        return None

    for key in SECTOR_KEYS:
        if normalize_keyword(key) == normalized:
            return key

    for key in SECTOR_KEYS:
        if _matches_any(normalized, _NORMALIZED_PRIMARY[key]):
            return key
        for _, sub_keywords in _NORMALIZED_SUB[key]:
            if _matches_any(normalized, sub_keywords):
                return key
    return None


def find_sub_sector(text: Optional[str]) -> Optional[Tuple[str, str]]:
    """First (sector, sub_sector) pair whose sub-sector keywords overlap the text."""
    normalized = normalize_keyword(text)
    if not normalized:
        return None
    for key in SECTOR_KEYS:
        for sub_key, sub_keywords in _NORMALIZED_SUB[key]:
            if _matches_any(normalized, sub_keywords):
                return key, sub_key
    return None


def relevance(sector_a: str, sector_b: str, default: float = DEFAULT_RELEVANCE) -> float:
    """Cross-industry relevance in [0, 1]; `default` for pairs outside the matrix."""
    if sector_a == sector_b:
        return 1.0
    i = _SECTOR_INDEX.get(sector_a)
    j = _SECTOR_INDEX.get(sector_b)
    if i is None or j is None:
        return default
    return float(INDUSTRY_RELEVANCE[i, j])


def sector_keywords(sector: str) -> List[str]:
    entry = INDUSTRY_TAXONOMY.get(sector)
    if entry is None:
        return []
    return list(entry.all_keywords())


def match_technology_domains(text: Optional[str]) -> List[str]:
    """Technology-domain ids whose keyword set overlaps the text."""
    normalized = normalize_keyword(text)
    if not normalized:
        return []
    return [domain for domain, keywords in _NORMALIZED_TECH.items()
            if _matches_any(normalized, keywords)]


def sector_name(sector: Optional[str]) -> Optional[str]:
    """Korean display name for a sector key, or None if unknown."""
    entry = INDUSTRY_TAXONOMY.get(sector) if sector else None
    return entry.name if entry else None


def display_sector_name(text: Optional[str]) -> Optional[str]:
    """Korean display name for a raw sector/category string; falls back to the raw text."""
    if not text:
        return None
    key = resolve_sector(text)
    return sector_name(key) or text
