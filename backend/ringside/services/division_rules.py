"""
Division Rules - single source of truth for division vocabulary.

Age groups, disciplines, genders, weight classes, seed methods, bracket
statuses and match states, plus the derivations that map a fighter onto a
division (age group from birth date, weight class from weight + gender).
"""

from datetime import date
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Tuple


class AgeGroup(str, Enum):
    U12 = "U12"
    U15 = "U15"
    U18 = "U18"
    U21 = "U21"
    ADULT = "Adult"
    SENIOR = "Senior"


class Discipline(str, Enum):
    K1 = "K1"
    KICKBOXING = "Kickboxing"
    KICKBOXING_LIGHT = "Kickboxing Light"
    MUAY_THAI = "Muay Thai"
    MMA = "MMA"
    GRAPPLING = "Grappling"
    BOXING = "Boxing"


class Gender(str, Enum):
    MALE = "M"
    FEMALE = "F"
    OPEN = "Open"


class SeedMethod(str, Enum):
    random = "random"
    ranking = "ranking"
    manual = "manual"


class BracketStatus(str, Enum):
    draft = "draft"
    published = "published"
    locked = "locked"


class MatchState(str, Enum):
    NO_SHOW = "NO_SHOW"
    WALK_OVER = "WALK_OVER"
    NO_PARTY = "NO_PARTY"
    DONE = "DONE"
    SCORE_DONE = "SCORE_DONE"


AGE_GROUP_VALUES: List[str] = [a.value for a in AgeGroup]
DISCIPLINE_VALUES: List[str] = [d.value for d in Discipline]
GENDER_VALUES: List[str] = [g.value for g in Gender]

# Upper age bound (exclusive) per group; Senior is open-ended
AGE_GROUP_LIMITS: List[Tuple[int, str]] = [
    (12, AgeGroup.U12.value),
    (15, AgeGroup.U15.value),
    (18, AgeGroup.U18.value),
    (21, AgeGroup.U21.value),
    (35, AgeGroup.ADULT.value),
]

# Inclusive age ranges used when synthesizing a fighter for an age group
AGE_GROUP_AGE_RANGES: Dict[str, Tuple[int, int]] = {
    AgeGroup.U12.value: (8, 11),
    AgeGroup.U15.value: (12, 14),
    AgeGroup.U18.value: (15, 17),
    AgeGroup.U21.value: (18, 20),
    AgeGroup.ADULT.value: (21, 34),
    AgeGroup.SENIOR.value: (35, 50),
}

# Weight class limits in kg. "-N" classes hold weights < N; the last entry is "+N".
WEIGHT_LIMITS: Dict[str, List[int]] = {
    Gender.MALE.value: [60, 65, 70, 75, 81, 86, 91],
    Gender.FEMALE.value: [50, 55, 60, 65, 70],
    Gender.OPEN.value: [60, 70, 80],
}

# Lightest weight ever generated for the lowest class
MIN_GENERATED_WEIGHT = 30
# Span above the top limit used for the "+N" class
OPEN_TOP_SPAN = 15


def _gender_value(gender) -> str:
    return gender.value if isinstance(gender, Gender) else str(gender)


def weight_class_values(gender: str) -> List[str]:
    limits = WEIGHT_LIMITS[_gender_value(gender)]
    return [f"-{limit}kg" for limit in limits] + [f"+{limits[-1]}kg"]


WEIGHT_CLASS_MEN_VALUES = weight_class_values(Gender.MALE.value)
WEIGHT_CLASS_WOMEN_VALUES = weight_class_values(Gender.FEMALE.value)
WEIGHT_CLASS_OPEN_VALUES = weight_class_values(Gender.OPEN.value)
ALL_WEIGHT_CLASS_VALUES: List[str] = sorted(
    set(WEIGHT_CLASS_MEN_VALUES + WEIGHT_CLASS_WOMEN_VALUES + WEIGHT_CLASS_OPEN_VALUES)
)


def age_on(birth_date: date, today: Optional[date] = None) -> int:
    """Full years of age at `today`."""
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def age_group_from_birth_date(birth_date: date, today: Optional[date] = None) -> str:
    age = age_on(birth_date, today)
    for limit, group in AGE_GROUP_LIMITS:
        if age < limit:
            return group
    return AgeGroup.SENIOR.value


def weight_class_from_kg(weight: float, gender) -> str:
    limits = WEIGHT_LIMITS[_gender_value(gender)]
    for limit in limits:
        if weight < limit:
            return f"-{limit}kg"
    return f"+{limits[-1]}kg"


def weight_class_range(weight_class: str, gender) -> Tuple[int, int]:
    """
    Inclusive integer kg range that maps back onto `weight_class` for `gender`.

    Raises:
        ValueError: weight class is not defined for the gender
    """
    limits = WEIGHT_LIMITS[_gender_value(gender)]
    classes = weight_class_values(gender)
    if weight_class not in classes:
        raise ValueError(f"Weight class {weight_class} is not defined for gender {_gender_value(gender)}")

    index = classes.index(weight_class)
    if index == len(limits):
        return limits[-1], limits[-1] + OPEN_TOP_SPAN
    upper = limits[index] - 1
    lower = limits[index - 1] if index > 0 else max(MIN_GENERATED_WEIGHT, limits[0] - 8)
    return lower, upper


class DivisionKey(NamedTuple):
    """Composite division key: two fighters with equal keys share a bracket."""

    age_group: str
    discipline: str
    weight_class: str
    gender: str

    SEPARATOR = "|"

    def normalized(self) -> str:
        return self.SEPARATOR.join(self)

    @classmethod
    def parse(cls, key: str) -> "DivisionKey":
        parts = key.split(cls.SEPARATOR)
        if len(parts) != 4:
            raise ValueError(f"Invalid division key: {key!r}")
        return cls(*parts)

    def label(self) -> str:
        gender_labels = {Gender.MALE.value: "Men", Gender.FEMALE.value: "Women", Gender.OPEN.value: "Open"}
        return " - ".join(
            [self.age_group, self.discipline, self.weight_class, gender_labels.get(self.gender, self.gender)]
        )


def division_key_for(birth_date: date, discipline: str, weight: float, gender: str, today: Optional[date] = None) -> DivisionKey:
    return DivisionKey(
        age_group=age_group_from_birth_date(birth_date, today),
        discipline=discipline,
        weight_class=weight_class_from_kg(weight, gender),
        gender=_gender_value(gender),
    )
