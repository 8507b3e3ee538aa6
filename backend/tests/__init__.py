# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from ringside.models.bracket import Bracket  # noqa: F401
from ringside.models.club import Club  # noqa: F401
from ringside.models.competition import Competition, CompetitionFighter  # noqa: F401
from ringside.models.fighter import Fighter  # noqa: F401
from ringside.models.match import Match  # noqa: F401
