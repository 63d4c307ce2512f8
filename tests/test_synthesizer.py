"""Tests for RecordSynthesizer."""

import re
import types

from drillseed.core import pools
from drillseed.core.random_source import MS_PER_DAY, RandomSource
from drillseed.core.synthesizer import RECORD_COLUMNS, RecordSynthesizer
from drillseed.core.timeline import Timeline, UidPool

from conftest import NOW_MS

SG_FIXED_KEYS = {'request_id', 'postfix', 'ended'}


def make_synthesizer(total_rows=1_000, seed=11) -> RecordSynthesizer:
    rand = RandomSource(seed)
    timeline = Timeline(total_rows, rand, now_ms=NOW_MS)
    return RecordSynthesizer(timeline, UidPool(total_rows, 0.07), rand)


class TestRecordShape:
    def test_has_every_column(self) -> None:
        record = make_synthesizer().make_record(0)

        assert tuple(record.keys()) == RECORD_COLUMNS

    def test_identity_fields(self) -> None:
        synth = make_synthesizer()
        record = synth.make_record(123)

        assert record['a'] == pools.APP_ID
        assert record['uid'] == 123 % synth.uid_pool.size
        assert re.fullmatch(rf"[0-9a-f]{{40}}_{record['uid']}_{record['ts']}", record['_id'])
        assert record['lsid'] == record['_id']
        assert record['sg']['request_id'] == record['_id']
        assert re.fullmatch(r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}", record['did'])

    def test_categorical_and_numeric_ranges(self) -> None:
        synth = make_synthesizer()

        for i in range(300):
            record = synth.make_record(i)
            assert record['e'] in pools.EVENT_TYPES
            assert record['cmp']['c'] in pools.CMP_CHANNELS
            assert record['custom'] in pools.CUSTOM_POOL
            assert 1 <= record['c'] <= 5
            assert 0.0 <= record['s'] <= 1.0
            assert round(record['s'], 6) == record['s']
            assert 100 <= record['dur'] <= 90_000
            assert synth.timeline.start_ms <= record['ts'] <= synth.timeline.now_ms

    def test_segmentation(self) -> None:
        synth = make_synthesizer()

        for i in range(200):
            sg = synth.make_record(i)['sg']
            random_keys = set(sg) - SG_FIXED_KEYS
            assert pools.SG_KEYS_MIN <= len(random_keys) <= pools.SG_KEYS_MAX
            assert all(re.fullmatch(r"k\d{4}", key) for key in random_keys)
            assert all(sg[key] in pools.SAMPLE_WORDS for key in random_keys)
            assert sg['postfix'] in pools.POSTFIXES
            assert sg['ended'] in ('true', 'false')

    def test_user_profile(self) -> None:
        synth = make_synthesizer()
        week_ago_s = (NOW_MS - 7 * MS_PER_DAY) // 1_000

        for _ in range(100):
            up = synth.make_user_profile()
            assert week_ago_s <= up['fs'] <= NOW_MS // 1_000
            assert week_ago_s <= up['ls'] <= NOW_MS // 1_000
            assert up['brwv'].startswith(f"[{up['brw']}]_")
            assert up['cty'] == up['rgn'] == up['c'] == pools.UNKNOWN
            assert re.fullmatch(r"o1[0-3]:[0-5]", up['pv'])
            assert 0 <= up['hour'] <= 23 and 0 <= up['dow'] <= 6

    def test_custom_is_a_copy(self) -> None:
        record = make_synthesizer().make_record(0)
        record['custom']['mutated'] = True

        assert all('mutated' not in entry for entry in pools.CUSTOM_POOL)


class TestIteration:
    def test_iter_records_is_lazy_and_ordered(self) -> None:
        synth = make_synthesizer()
        records = synth.iter_records(50, 10)

        assert isinstance(records, types.GeneratorType)
        uids = [record['uid'] for record in records]
        assert uids == [i % synth.uid_pool.size for i in range(50, 60)]

    def test_same_seed_same_records(self) -> None:
        first = list(make_synthesizer(seed=5).iter_records(0, 20))
        second = list(make_synthesizer(seed=5).iter_records(0, 20))

        assert first == second

    def test_different_seed_different_records(self) -> None:
        first = make_synthesizer(seed=5).make_record(0)
        second = make_synthesizer(seed=6).make_record(0)

        assert first['_id'] != second['_id']
