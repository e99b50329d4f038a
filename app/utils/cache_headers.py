# app/utils/cache_headers.py
"""Cache-Control header presets for API responses."""
from typing import Dict

# (s-maxage, stale-while-revalidate) in seconds
STABLE_DATA = (300, 600)
USER_DATA = (60, 120)
REALTIME_DATA = (30, 60)
NO_CACHE = (0, 0)


def cache_control(s_maxage: int, stale_while_revalidate: int, private: bool = False) -> str:
    if s_maxage == 0:
        return "no-store, no-cache, must-revalidate"
    visibility = "private" if private else "public"
    return f"{visibility}, s-maxage={s_maxage}, stale-while-revalidate={stale_while_revalidate}"


def stable_headers() -> Dict[str, str]:
    return {"Cache-Control": cache_control(*STABLE_DATA)}


def user_data_headers() -> Dict[str, str]:
    return {"Cache-Control": cache_control(*USER_DATA)}


def realtime_headers() -> Dict[str, str]:
    return {"Cache-Control": cache_control(*REALTIME_DATA)}


def no_cache_headers() -> Dict[str, str]:
    return {"Cache-Control": cache_control(*NO_CACHE)}
