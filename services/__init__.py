# Service modules
from .models import (
    StationKind,
    Station,
    PlayerForScoring,
    Measurement,
    ScoreDependencies,
    PlayerStatEntry,
    PlayerPerformanceEntry,
    LeaderboardEntry,
    RawMetrics,
)
from .scoremap_service import (
    parse_score_map,
    load_score_map,
    build_score_dependencies,
    ScoreMapCache,
)
from .age_service import (
    resolve_age,
    nearest_age_bucket,
    resolve_event_year,
)
from .scoring_service import (
    score_for_station,
    normalize_linear,
    round_half_up,
)
from .aggregation_service import (
    aggregate_score,
    average_across_stations,
    sum_across_stations,
)
from .performance_service import (
    build_player_performances,
    build_leaderboard,
    build_player_station_averages,
    build_capture_matrix,
    sort_stations_for_performance,
    measurements_to_raw_metrics,
)
from .capture_service import (
    passing_raw_from_hits,
    shot_accuracy_raw_from_hits,
)
