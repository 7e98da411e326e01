"""EcoFlow IoT open API endpoint constants."""

from __future__ import annotations

import os


# Europe region host; other regions expose the same paths on ``api-a``/``api``.
ECOFLOW_BASE = os.getenv("ECOFLOW_BASE_URL", "https://api-e.ecoflow.com").rstrip("/")

PATH_DEVICE_LIST = "/iot-open/sign/device/list"
PATH_DEVICE_QUOTA = "/iot-open/sign/device/quota"
PATH_DEVICE_QUOTA_ALL = "/iot-open/sign/device/quota/all"

JSON_CONTENT_TYPE = "application/json;charset=UTF-8"


__all__ = [
    "ECOFLOW_BASE",
    "JSON_CONTENT_TYPE",
    "PATH_DEVICE_LIST",
    "PATH_DEVICE_QUOTA",
    "PATH_DEVICE_QUOTA_ALL",
]
