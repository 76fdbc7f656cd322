"""Datetime helpers."""

from __future__ import annotations

import os

import pendulum

DEFAULT_TZ = "Europe/Paris"


def timezone_name() -> str:
    return os.environ.get("TIMEZONE", DEFAULT_TZ)


def utc_now() -> pendulum.DateTime:
    return pendulum.now("UTC")


def now_in_tz() -> pendulum.DateTime:
    return pendulum.now(pendulum.timezone(timezone_name()))


def format_timestamp(value: pendulum.DateTime) -> str:
    return value.format("YYYY-MM-DD HH:mm:ss")
