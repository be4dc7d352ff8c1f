from __future__ import annotations
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, model_validator

from config import SETTINGS

_D = SETTINGS.DEFAULTS

# ===== Pydantic schemas (app/routes와 동일 인터페이스 유지) =====
class StartPoint(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0, allow_inf_nan=False)
    lng: float = Field(ge=-180.0, le=180.0, allow_inf_nan=False)

class Options(BaseModel):
    # Glyph layout
    char_spacing_m: float = Field(default=_D["char_spacing_m"], gt=0)

    # Street data
    street_source: Literal["overpass", "osmnx"] = _D["street_source"]
    highway_types: List[str] = Field(default_factory=lambda: list(_D["highway_types"]), min_length=1)
    overpass_timeout_s: int = Field(default=_D["overpass_timeout_s"], gt=0)
    request_timeout_s: float = Field(default=_D["request_timeout_s"], gt=0)
    fetch_attempts: int = Field(default=_D["fetch_attempts"], ge=1)
    retry_delay_s: float = Field(default=_D["retry_delay_s"], ge=0.0)

    # Connector
    connector: Literal["osrm", "graph"] = _D["connector"]
    connector_timeout_s: float = Field(default=_D["connector_timeout_s"], gt=0)
    graph_radius_m: int = Field(default=_D["graph_radius_m"], gt=0)

    # Distance regulation
    extension_tolerance_km: float = Field(default=_D["extension_tolerance_km"], ge=0.0)
    simplify_start_tolerance: float = Field(default=_D["simplify_start_tolerance"], gt=0)
    simplify_max_tolerance: float = Field(default=_D["simplify_max_tolerance"], gt=0)
    simplify_growth: float = Field(default=_D["simplify_growth"], gt=1.0)

    # 재현 가능한 우회 방향 선택용
    seed: Optional[int] = None

    model_config = {"frozen": True}

class GeneratePayload(BaseModel):
    text: str = Field(min_length=1, max_length=40)
    start_point: StartPoint
    min_km: float = Field(gt=0, allow_inf_nan=False)
    max_km: float = Field(gt=0, allow_inf_nan=False)
    options: Optional[Options] = None
    debug: bool = False

    @model_validator(mode="after")
    def _check_range(self) -> "GeneratePayload":
        if not self.text.strip():
            raise ValueError("text must not be blank")
        if self.min_km >= self.max_km:
            raise ValueError("min_km must be smaller than max_km")
        return self
