# config.py
from pathlib import Path

BASE_DIR = Path(__file__).parent.resolve()

class Settings:
    DEBUG = True
    HOST = "127.0.0.1"
    PORT = 5001
    LOG_LEVEL = "INFO"

    DATA_DIR = BASE_DIR / "data"
    CACHE_DIR = DATA_DIR / "cache"

    # 외부 서비스
    OVERPASS_URL = "https://overpass-api.de/api/interpreter"
    OSRM_URL = "https://router.project-osrm.org/route/v1/foot/"
    USER_AGENT = "text-route/0.1"

    # 글자 배치/거리 조정 기본값
    DEFAULTS = {
        "char_spacing_m": 200.0,
        "highway_types": [
            "residential", "tertiary", "secondary", "primary", "footway",
            "path", "pedestrian", "living_street", "unclassified",
        ],
        "street_source": "overpass",      # "overpass" | "osmnx"
        "connector": "osrm",              # "osrm" | "graph"
        "overpass_timeout_s": 25,
        "request_timeout_s": 60.0,
        "connector_timeout_s": 30.0,
        "fetch_attempts": 3,
        "retry_delay_s": 2.0,
        "graph_radius_m": 3000,
        "extension_tolerance_km": 0.1,
        "simplify_start_tolerance": 1e-5,
        "simplify_max_tolerance": 1e-3,
        "simplify_growth": 1.5,
    }

SETTINGS = Settings()
