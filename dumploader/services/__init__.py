"""Pipeline services: decoding, flattening, batched loading and dump sources."""

from dumploader.services.dump_load_service import DumpLoadService, LoadJob, LoadSummary
from dumploader.services.dump_source import open_dump
from dumploader.services.load_executor import DEFAULT_BATCH_CAPACITY, ExecutorState, LoadExecutor
from dumploader.services.record_decoder import (
    decode_artists,
    decode_labels,
    decode_masters,
    decode_records,
    decode_releases,
)
from dumploader.services.record_flattener import (
    flatten,
    flatten_artist,
    flatten_label,
    flatten_master,
    flatten_release,
)

__all__ = [
    "DEFAULT_BATCH_CAPACITY",
    "DumpLoadService",
    "ExecutorState",
    "LoadExecutor",
    "LoadJob",
    "LoadSummary",
    "decode_artists",
    "decode_labels",
    "decode_masters",
    "decode_records",
    "decode_releases",
    "flatten",
    "flatten_artist",
    "flatten_label",
    "flatten_master",
    "flatten_release",
    "open_dump",
]
