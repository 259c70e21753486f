"""
Affluent: Lazy Async Streaming Pipelines

A small Python library for building lazy, pull-based data processing pipelines
on top of asyncio. Nothing runs until a terminal operation pulls the items, and
each item travels through the whole chain before the next one is pulled.

Key Features:
- Lazy, single-pass streams with directional cancellation (take() stops upstream)
- Fork: several independent branches over one upstream, pulled once per item
- Per-step error policies (skip, substitute, propagate)
- Sinks writing to several destinations with per-destination ordering

Quick Start:
    import affluent as af

    # Method chaining
    result = await af.Pipeline(range(10)).map(lambda x: x * 2).take(5).result()

    # Steps with |
    result = await (range(10) | af.Map(lambda x: x * 2) | af.Take(5)).result()

    # Streaming processing
    async for item in af.Pipeline(data).map(async_transform).filter(validate).stream():
        process(item)

    # Error handling
    result = await af.Pipeline(data).map(might_fail, af.skip_errors).result()

    # Branching
    source = af.Pipeline(data)
    left, right = source.fork(), source.fork()
    await asyncio.gather(left.each(store), right.pipe(destination))
"""

import logging

from .errors import (
    ErrorAction,
    ErrorCollector,
    ErrorEvent,
    ErrorOutcome,
    ErrorPolicy,
    PipelineError,
    SinkWriteError,
    StageCallbackError,
    StructuralError,
    propagate_errors,
    skip_errors,
    substitute_with,
)

from .stream import Stream

from .steps import (
    Chunk,
    Collect,
    Filter,
    Flat,
    FlatMap,
    GroupBy,
    Join,
    Map,
    Reduce,
    Split,
    Take,
    Tap,
    Unique,
    Validate,
)

from .base import Chain, Step
from .fork import ForkFactory, fork
from .sinks import (
    CallbackDestination,
    PipeDestination,
    QueueDestination,
    ReadableStream,
    StreamOptions,
    StreamWriterDestination,
)
from .pipeline import Pipeline, pipeline

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CallbackDestination",
    "Chain",
    "Chunk",
    "Collect",
    "ErrorAction",
    "ErrorCollector",
    "ErrorEvent",
    "ErrorOutcome",
    "ErrorPolicy",
    "Filter",
    "Flat",
    "FlatMap",
    "ForkFactory",
    "GroupBy",
    "Join",
    "Map",
    "PipeDestination",
    "Pipeline",
    "PipelineError",
    "QueueDestination",
    "ReadableStream",
    "Reduce",
    "SinkWriteError",
    "Split",
    "StageCallbackError",
    "Step",
    "Stream",
    "StreamOptions",
    "StreamWriterDestination",
    "StructuralError",
    "Take",
    "Tap",
    "Unique",
    "Validate",
    "fork",
    "pipeline",
    "propagate_errors",
    "skip_errors",
    "substitute_with",
]
