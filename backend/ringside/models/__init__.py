from ringside.models.bracket import Bracket
from ringside.models.club import Club
from ringside.models.competition import Competition, CompetitionFighter
from ringside.models.fighter import Fighter
from ringside.models.match import Match

__all__ = [
    "Club",
    "Fighter",
    "Competition",
    "CompetitionFighter",
    "Bracket",
    "Match",
]
