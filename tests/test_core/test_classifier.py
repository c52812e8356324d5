"""Tests for bark_responder.core.classifier"""

import pytest

from bark_responder.core.classifier import (
    ThresholdConfig, classify, default_thresholds,
    MAX_THRESHOLD_DB, MIN_THRESHOLD_DB
)
from bark_responder.core.exceptions import ConfigCorruptError, ThresholdOrderError
from bark_responder.core.models import ThresholdLevel


class TestClassify:
    """Test level classification against ordered thresholds"""

    def test_loud_sample_exceeds_both_levels(self, two_level_thresholds):
        """A -10 dBFS sample exceeds -30 and -15 and lands on level 2"""
        assert classify(-10.0, two_level_thresholds, 1.0) == 2

    def test_sample_exceeding_only_first_level(self, two_level_thresholds):
        assert classify(-20.0, two_level_thresholds, 1.0) == 1

    def test_quiet_sample_has_no_level(self, two_level_thresholds):
        assert classify(-40.0, two_level_thresholds, 1.0) is None

    def test_sample_equal_to_threshold_does_not_exceed(self, two_level_thresholds):
        """Comparison is strict"""
        assert classify(-30.0, two_level_thresholds) is None
        assert classify(-15.0, two_level_thresholds) == 1

    def test_highest_matching_level_wins(self):
        thresholds = [
            ThresholdLevel('a', 'Low', -50.0),
            ThresholdLevel('b', 'Mid', -40.0),
            ThresholdLevel('c', 'High', -20.0),
        ]
        assert classify(-30.0, thresholds) == 2
        assert classify(-5.0, thresholds) == 3

    def test_unsorted_input_is_sorted_before_comparison(self, two_level_thresholds):
        reversed_levels = list(reversed(two_level_thresholds))
        assert classify(-10.0, reversed_levels) == 2
        assert classify(-20.0, reversed_levels) == 1

    def test_accepts_threshold_config(self):
        assert classify(-20.0, ThresholdConfig.default()) == 1

    @pytest.mark.parametrize("sample", [-59.0, -31.0, -29.5, -16.0, -14.9, -1.0])
    def test_result_is_greatest_exceeded_index(self, sample, two_level_thresholds):
        expected = None
        for index, level in enumerate(two_level_thresholds):
            if sample > level.value:
                expected = index + 1
        assert classify(sample, two_level_thresholds, 1.0) == expected

    @pytest.mark.parametrize("sample,sensitivity", [
        (-20.0, 0.5), (-20.0, 2.0), (-12.0, 1.5), (-40.0, 0.7), (-35.0, 1.2)
    ])
    def test_sensitivity_scales_the_sample(self, sample, sensitivity, two_level_thresholds):
        assert classify(sample, two_level_thresholds, sensitivity) == \
            classify(sample * sensitivity, two_level_thresholds, 1.0)

    def test_sensitivity_below_one_makes_negative_levels_louder(self, two_level_thresholds):
        # -40 * 0.5 = -20, which exceeds the first level
        assert classify(-40.0, two_level_thresholds, 0.5) == 1

    def test_corrupt_thresholds_fall_back_to_defaults(self):
        """A non-sequence threshold value is recovered, not raised"""
        assert classify(-20.0, "not a list") == 1
        assert classify(-10.0, [{'id': '1', 'name': 'x', 'value': 'loud'}]) == 2

    def test_persisted_dicts_are_accepted(self):
        thresholds = [{'id': '1', 'name': 'Gentle Woof', 'value': -30}]
        assert classify(-25.0, thresholds) == 1


class TestThresholdConfig:
    """Test the ordered, validated threshold list"""

    def test_default_configuration(self):
        config = ThresholdConfig.default()
        assert len(config) == 2
        assert [level.value for level in config] == [-30.0, -15.0]
        assert [level.name for level in config] == ['Gentle Woof', 'Big Bark']

    def test_default_thresholds_are_fresh_copies(self):
        first = default_thresholds()
        first[0].value = -55.0
        assert default_thresholds()[0].value == -30.0

    def test_rejects_unordered_levels(self):
        with pytest.raises(ThresholdOrderError):
            ThresholdConfig([ThresholdLevel('1', 'a', -10.0), ThresholdLevel('2', 'b', -20.0)])

    def test_rejects_equal_values(self):
        with pytest.raises(ThresholdOrderError):
            ThresholdConfig([ThresholdLevel('1', 'a', -20.0), ThresholdLevel('2', 'b', -20.0)])

    def test_rejects_empty_and_duplicate_ids(self):
        with pytest.raises(ThresholdOrderError):
            ThresholdConfig([])
        with pytest.raises(ThresholdOrderError):
            ThresholdConfig([ThresholdLevel('1', 'a', -30.0), ThresholdLevel('1', 'b', -20.0)])

    def test_threshold_order_error_is_value_error(self):
        assert issubclass(ThresholdOrderError, ValueError)

    def test_from_list_sorts_persisted_data(self):
        config = ThresholdConfig.from_list([
            {'id': '2', 'name': 'Big Bark', 'value': -15},
            {'id': '1', 'name': 'Gentle Woof', 'value': -30},
        ])
        assert [level.id for level in config] == ['1', '2']

    @pytest.mark.parametrize("data", [
        None,
        {'id': '1'},
        [{'id': '1', 'name': 'a'}],
        [{'id': '1', 'name': 'a', 'value': None}],
        [{'id': '1', 'name': 'a', 'value': -20}, {'id': '2', 'name': 'b', 'value': -20}],
        ['oops'],
    ])
    def test_from_list_rejects_corrupt_data(self, data):
        with pytest.raises(ConfigCorruptError):
            ThresholdConfig.from_list(data)

    def test_to_list_round_trips_through_from_list(self):
        config = ThresholdConfig.default()
        assert ThresholdConfig.from_list(config.to_list()) == config

    def test_levels_property_is_a_copy(self):
        config = ThresholdConfig.default()
        config.levels.append(ThresholdLevel('x', 'x', -1.0))
        assert len(config) == 2

    def test_level_number(self):
        config = ThresholdConfig.default()
        assert config.level_number('2') == 2
        with pytest.raises(KeyError):
            config.level_number('missing')

    def test_add_level_defaults_five_db_above_highest(self):
        config = ThresholdConfig.default()
        level = config.add_level()
        assert level.value == -10.0
        assert level.name == 'Level 3'
        assert config.level_number(level.id) == 3

    def test_add_level_with_name_and_value(self):
        config = ThresholdConfig.default()
        level = config.add_level(name='Howl', value=-5.0)
        assert level.name == 'Howl'
        assert config.levels[-1] == level

    def test_add_level_rejects_values_not_above_highest(self):
        config = ThresholdConfig.default()
        with pytest.raises(ThresholdOrderError):
            config.add_level(value=-20.0)
        assert len(config) == 2

    def test_add_level_cannot_exceed_zero_dbfs(self):
        config = ThresholdConfig([ThresholdLevel('1', 'a', -2.0)])
        with pytest.raises(ThresholdOrderError):
            config.add_level()

    def test_remove_level(self):
        config = ThresholdConfig.default()
        removed = config.remove_level('1')
        assert removed.name == 'Gentle Woof'
        assert [level.id for level in config] == ['2']

    def test_cannot_remove_only_level(self):
        config = ThresholdConfig([ThresholdLevel('1', 'a', -30.0)])
        with pytest.raises(ThresholdOrderError):
            config.remove_level('1')

    def test_update_value_within_neighbours(self):
        config = ThresholdConfig.default()
        updated = config.update_value('1', -25.0)
        assert updated.value == -25.0
        assert config.levels[0].value == -25.0

    @pytest.mark.parametrize("level_id,value", [
        ('1', -15.0), ('1', -10.0), ('2', -30.0), ('2', -40.0),
        ('1', MIN_THRESHOLD_DB - 1), ('2', MAX_THRESHOLD_DB + 1),
    ])
    def test_update_value_rejects_order_violations(self, level_id, value):
        config = ThresholdConfig.default()
        with pytest.raises(ThresholdOrderError):
            config.update_value(level_id, value)
        assert [level.value for level in config] == [-30.0, -15.0]

    def test_rename_level(self):
        config = ThresholdConfig.default()
        config.rename_level('2', 'Loud Bark')
        assert config.levels[1].name == 'Loud Bark'
        assert config.levels[1].value == -15.0
