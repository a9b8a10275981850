from app.models.node import FetchMode, GetTelemetryNodeConfig
from app.models.query import Aggregation, Interval, OrderBy, ReadTsKvQuery


def effective_limit(config: GetTelemetryNodeConfig) -> int:
    if config.fetch_mode == FetchMode.ALL:
        return config.limit
    return 1


def effective_order(config: GetTelemetryNodeConfig) -> OrderBy:
    if config.fetch_mode == FetchMode.ALL:
        return config.order_by
    elif config.fetch_mode == FetchMode.FIRST:
        return OrderBy.ASC
    return OrderBy.DESC


def aggregation_interval(config: GetTelemetryNodeConfig, interval: Interval) -> int:
    if config.aggregation == Aggregation.NONE:
        return 1
    # one bucket spanning the whole range
    return interval.end_ts - interval.start_ts


def build_queries(
    config: GetTelemetryNodeConfig, interval: Interval, keys: list[str]
) -> list[ReadTsKvQuery]:
    step = aggregation_interval(config, interval)
    limit = effective_limit(config)
    order = effective_order(config)

    return [
        ReadTsKvQuery(
            key=key,
            start_ts=interval.start_ts,
            end_ts=interval.end_ts,
            interval=step,
            limit=limit,
            aggregation=config.aggregation,
            order=order,
        )
        for key in keys
    ]
