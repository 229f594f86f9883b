"""Unit tests for the candidate scoring engine.

Key rules:
- Exactly one days-out band and one era band apply per pair
- City spread and genre count are judged over the movie's eligible screenings
- Soft cooldown costs exactly 30 points
- Ties go to the first candidate seen
"""

import pytest
import yaml

from app.config import get_settings
from app.services.candidates.engine import CandidateScoringEngine, select_best
from app.services.candidates.types import ScoredCandidate


class TestScoringEngine:
    """Test the CandidateScoringEngine class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = CandidateScoringEngine()

    def test_engine_loads_default_config(self):
        """Defaults come from defaults.yaml."""
        assert self.engine.min_score == 60
        assert self.engine.weights["screening_nearby"] == 40
        assert self.engine.weights["soft_cooldown_penalty"] == -30
        assert self.engine.min_days == 1
        assert self.engine.max_days == 7
        assert self.engine.hard_days == 21
        assert self.engine.soft_end_days == 35

    def test_high_quality_classic_scores_90(
        self, high_quality_movie, base_date
    ):
        """
        1982 movie, 2 genres, 2 cities, subtitled screening 2 days out.

        40 (nearby) + 10 (classic) + 20 (multi city) + 10 (genres) + 10 (subs)
        """
        subtitled = high_quality_movie.screenings[0]
        result = self.engine.score_screening(high_quality_movie, subtitled, base_date)

        assert result.score == 90
        assert result.components == {
            "days_out": 40,
            "era": 10,
            "multi_city": 20,
            "multi_genre": 10,
            "subtitled": 10,
            "soft_cooldown": 0,
        }

    def test_multi_city_uses_all_eligible_screenings(
        self, high_quality_movie, base_date
    ):
        """The 5-days-out screening still earns the city bonus from its sibling."""
        other = high_quality_movie.screenings[1]
        result = self.engine.score_screening(high_quality_movie, other, base_date)

        assert result.components["multi_city"] == 20
        assert result.score == 20 + 10 + 20 + 10

    def test_deep_classic_bonus_differs_by_ten(
        self, make_movie, make_screening, base_date
    ):
        """1960 and 1995 otherwise identical: 20 vs 10 points."""
        old = make_movie(1, year=1960, screenings=[make_screening(10, 1)])
        newer = make_movie(2, year=1995, screenings=[make_screening(20, 2)])

        old_score = self.engine.score_screening(old, old.screenings[0], base_date).score
        new_score = self.engine.score_screening(
            newer, newer.screenings[0], base_date
        ).score

        assert old_score - new_score == 10

    def test_soft_cooldown_costs_exactly_30(
        self, make_movie, make_screening, base_date
    ):
        """A soft-penalized movie scores 30 less than an identical one."""
        penalized = make_movie(1, screenings=[make_screening(10, 1)])
        fresh = make_movie(2, screenings=[make_screening(20, 2)])

        scored = self.engine.score_candidates(
            [penalized, fresh], base_date, soft_cooldown_ids={1}
        )

        assert scored[1].score - scored[0].score == 30
        assert scored[0].components["soft_cooldown"] == -30

    def test_single_city_and_single_genre_earn_nothing(
        self, make_movie, make_screening, base_date
    ):
        movie = make_movie(
            1,
            genre_ids=(5,),
            screenings=[
                make_screening(10, 1, city_id=4),
                make_screening(11, 1, days_out=3, city_id=4),
            ],
        )
        result = self.engine.score_screening(movie, movie.screenings[0], base_date)

        assert result.components["multi_city"] == 0
        assert result.components["multi_genre"] == 0

    def test_unknown_city_is_not_counted(
        self, make_movie, make_screening, base_date
    ):
        """Screenings without a resolvable city don't add geographic spread."""
        movie = make_movie(
            1,
            screenings=[
                make_screening(10, 1, city_id=4),
                make_screening(11, 1, city_id=None),
                make_screening(12, 1, city_id=0),
            ],
        )
        assert self.engine.movie_points(movie)["multi_city"] == 0

    def test_dubbing_has_no_effect(self, make_movie, make_screening, base_date):
        dubbed = make_movie(1, screenings=[make_screening(10, 1, dubbed=True)])
        plain = make_movie(2, screenings=[make_screening(20, 2)])

        scored = self.engine.score_candidates([dubbed, plain], base_date)
        assert scored[0].score == scored[1].score

    def test_score_candidates_preserves_input_order(
        self, make_movie, make_screening, base_date
    ):
        first = make_movie(3, screenings=[make_screening(30, 3), make_screening(31, 3)])
        second = make_movie(1, screenings=[make_screening(10, 1)])

        scored = self.engine.score_candidates([first, second], base_date)

        assert [s.screening.id for s in scored] == [30, 31, 10]


class TestBandFunctions:
    """Test the banded rules."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = CandidateScoringEngine()

    @pytest.mark.parametrize("days_out", [1, 2, 3])
    def test_nearby_band(self, days_out):
        assert self.engine.days_out_points(days_out) == 40

    @pytest.mark.parametrize("days_out", [4, 5, 6, 7])
    def test_upcoming_band(self, days_out):
        assert self.engine.days_out_points(days_out) == 20

    @pytest.mark.parametrize("days_out", [-1, 0, 8, 30])
    def test_outside_window_earns_nothing(self, days_out):
        assert self.engine.days_out_points(days_out) == 0

    def test_era_bands(self):
        assert self.engine.era_points(1939) == 20
        assert self.engine.era_points(1979) == 20
        assert self.engine.era_points(1980) == 10
        assert self.engine.era_points(1999) == 10
        assert self.engine.era_points(2000) == 0


class TestSelector:
    """Test select_best."""

    def _scored(self, make_movie, make_screening, score, movie_id):
        movie = make_movie(movie_id, screenings=[make_screening(movie_id * 10, movie_id)])
        return ScoredCandidate(movie=movie, screening=movie.screenings[0], score=score)

    def test_empty_input_returns_none(self):
        assert select_best([]) is None

    def test_highest_score_wins(self, make_movie, make_screening):
        scored = [
            self._scored(make_movie, make_screening, 50, 1),
            self._scored(make_movie, make_screening, 80, 2),
            self._scored(make_movie, make_screening, 70, 3),
        ]
        assert select_best(scored).movie.id == 2

    def test_ties_keep_first_seen(self, make_movie, make_screening):
        scored = [
            self._scored(make_movie, make_screening, 70, 4),
            self._scored(make_movie, make_screening, 70, 2),
            self._scored(make_movie, make_screening, 70, 9),
        ]
        assert select_best(scored).movie.id == 4

    def test_threshold(self, make_movie, make_screening):
        engine = CandidateScoringEngine()
        assert engine.is_publishable(self._scored(make_movie, make_screening, 60, 1))
        assert not engine.is_publishable(
            self._scored(make_movie, make_screening, 59, 1)
        )
        assert not engine.is_publishable(None)


class TestEngineConfig:
    """Test configuration handling."""

    def test_fallback_config_matches_defaults(self):
        """The hard-coded fallback is the same rule set as defaults.yaml."""
        fallback = CandidateScoringEngine(CandidateScoringEngine._get_fallback_config())
        default = CandidateScoringEngine()

        assert fallback.weights == default.weights
        assert fallback.min_score == default.min_score
        assert fallback.window == default.window
        assert fallback.cooldown == default.cooldown

    def test_missing_weight_raises(self):
        config = CandidateScoringEngine._get_fallback_config()
        del config["weights"]["subtitled"]

        with pytest.raises(ValueError, match="subtitled"):
            CandidateScoringEngine(config)

    def test_inconsistent_window_raises(self):
        config = CandidateScoringEngine._get_fallback_config()
        config["window"]["nearby_max_days"] = 10

        with pytest.raises(ValueError):
            CandidateScoringEngine(config)

    def test_custom_weights_are_used(self, make_movie, make_screening, base_date):
        config = CandidateScoringEngine._get_fallback_config()
        config["weights"]["subtitled"] = 9
        engine = CandidateScoringEngine(config)

        movie = make_movie(1, genre_ids=(1,), screenings=[make_screening(10, 1, subtitled=True)])
        assert engine.score_screening(movie, movie.screenings[0], base_date).score == 59


class TestConfigPath:
    """The engine reads the defaults file named by the CONFIG_PATH setting."""

    @pytest.fixture(autouse=True)
    def fresh_settings(self):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_custom_config_path_is_loaded(self, tmp_path, monkeypatch):
        config = CandidateScoringEngine._get_fallback_config()
        config["min_score"] = 75
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump({"candidates": config}))
        monkeypatch.setenv("CONFIG_PATH", str(path))

        engine = CandidateScoringEngine()

        assert get_settings().config_path == path
        assert engine.min_score == 75

    def test_file_without_candidates_section_uses_fallback(self, tmp_path, monkeypatch):
        path = tmp_path / "other.yaml"
        path.write_text(yaml.safe_dump({"unrelated": {"min_score": 99}}))
        monkeypatch.setenv("CONFIG_PATH", str(path))

        engine = CandidateScoringEngine()

        assert engine.min_score == 60
        assert engine.weights == CandidateScoringEngine._get_fallback_config()["weights"]

    def test_missing_file_uses_fallback(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CONFIG_PATH", str(tmp_path / "absent.yaml"))

        assert CandidateScoringEngine().min_score == 60
