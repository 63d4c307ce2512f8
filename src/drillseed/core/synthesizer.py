"""
Record Synthesizer - one drill event per logical row index

Shape is fixed, content is random. Only uid (from the index) and ts (from the
timeline) are tied to the index; every other field is an independent draw.
"""

from typing import Any, Dict, Iterator

from drillseed.core import pools
from drillseed.core.random_source import RandomSource
from drillseed.core.timeline import Timeline, UidPool

Record = Dict[str, Any]

# Column order of the drill_events table
RECORD_COLUMNS = (
    'a', 'e', 'uid', 'did', 'lsid', '_id', 'ts',
    'up', 'custom', 'cmp', 'sg', 'c', 's', 'dur',
)

# Columns holding nested objects
NESTED_COLUMNS = frozenset({'up', 'custom', 'cmp', 'sg'})


class RecordSynthesizer:
    """Builds drill event records lazily, one index at a time"""

    def __init__(
        self,
        timeline: Timeline,
        uid_pool: UidPool,
        random_source: RandomSource,
        app_id: str = pools.APP_ID,
    ):
        self.timeline = timeline
        self.uid_pool = uid_pool
        self.rand = random_source
        self.app_id = app_id

    @property
    def total_rows(self) -> int:
        return self.timeline.total_rows

    def make_user_profile(self) -> Dict[str, Any]:
        rand = self.rand
        now_ms = self.timeline.now_ms
        browser = rand.choice(pools.BROWSERS)

        return {
            'fs': rand.epoch_seconds_within(now_ms, pools.PROFILE_WINDOW_DAYS),
            'ls': rand.epoch_seconds_within(now_ms, pools.PROFILE_WINDOW_DAYS),
            'sc': rand.randint(1, 3),
            'd': rand.choice(pools.PLATFORMS),
            'cty': pools.UNKNOWN,
            'rgn': pools.UNKNOWN,
            'cc': rand.choice(pools.COUNTRY_CODES),
            'p': rand.choice(pools.OS_NAMES),
            'pv': f"o{rand.randint(10, 13)}:{rand.randint(0, 5)}",
            'av': f"{rand.randint(1, 6)}:{rand.randint(0, 10)}:{rand.randint(0, 10)}",
            'c': pools.UNKNOWN,
            'r': rand.choice(pools.RESOLUTIONS),
            'brw': browser,
            'brwv': f"[{browser}]_{rand.randint(100, 140)}:0:0:0",
            'la': rand.choice(pools.LANG_CODES),
            'src': rand.choice(pools.SOURCES),
            'src_ch': rand.choice(pools.SOURCE_CHANNELS),
            'lv': rand.choice(pools.VIEW_NAMES),
            'hour': rand.randint(0, 23),
            'dow': rand.randint(0, 6),
        }

    def make_segmentation(self, event_id: str) -> Dict[str, str]:
        rand = self.rand
        keys = rand.sample_between(pools.SG_KEYS, pools.SG_KEYS_MIN, pools.SG_KEYS_MAX)
        sg = {key: rand.choice(pools.SAMPLE_WORDS) for key in keys}
        sg.update({
            'request_id': event_id,
            'postfix': rand.choice(pools.POSTFIXES),
            'ended': 'true' if rand.coin() else 'false',
        })
        return sg

    def make_record(self, index: int) -> Record:
        """Build the record for logical row `index`"""
        rand = self.rand
        ts = self.timeline.timestamp_for(index)
        uid = self.uid_pool.uid_for(index)
        event_id = f"{rand.hex_bytes(20)}_{uid}_{ts}"

        return {
            'a': self.app_id,
            'e': rand.choice(pools.EVENT_TYPES),
            'uid': uid,
            'did': rand.uuid4(),
            'lsid': event_id,
            '_id': event_id,
            'ts': ts,
            'up': self.make_user_profile(),
            'custom': dict(rand.choice(pools.CUSTOM_POOL)),
            'cmp': {'c': rand.choice(pools.CMP_CHANNELS)},
            'sg': self.make_segmentation(event_id),
            'c': rand.randint(1, 5),
            's': rand.uniform_round(0, 1, 6),
            'dur': rand.randint(100, 90_000),
        }

    def iter_records(self, offset: int, size: int) -> Iterator[Record]:
        """Yield records for indices [offset, offset + size) in order"""
        for index in range(offset, offset + size):
            yield self.make_record(index)
