from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class SimModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    epoch: tuple[int, int, int, int, int, int] = (2025, 1, 1, 0, 0, 0)
    seed: int = 33
    duration: float = 7200.0  # seconds; also the "stay forever" dwell

    @field_validator("duration")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("duration must be > 0")
        return v


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1


# ----------------- LOCATION ---------------------


class PointModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class LocationModel(BaseModel):
    """Simulation area. Empty boundary/bounds are filled from the named area preset."""

    model_config = ConfigDict(extra="forbid")
    area: str | None = None
    boundary: list[tuple[float, float]] = Field(default_factory=list)  # [lat, lon]
    min_lat: float | None = None
    max_lat: float | None = None
    min_lon: float | None = None
    max_lon: float | None = None
    points_of_interest: dict[str, PointModel] = Field(default_factory=dict)

    @field_validator("boundary")
    @classmethod
    def _polygon(cls, v: list[tuple[float, float]]) -> list[tuple[float, float]]:
        if v and len(v) < 3:
            raise ValueError(f"boundary needs at least 3 points, got {len(v)}")
        return v


class LatencyModelCfg(BaseModel):
    model_config = ConfigDict(extra="forbid")
    base_wifi_s: float = 0.030
    wifi_per_km_s: float = 1e-5
    base_server_s: float = 0.031
    server_per_km_s: float = 1e-5

    @field_validator("base_wifi_s", "wifi_per_km_s", "base_server_s", "server_per_km_s")
    def _nonneg(cls, v: float, info: ValidationInfo) -> float:
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v


# ----------------- PATHING ---------------------


class PathingBeelineModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["beeline"] = "beeline"


class PathingJitterModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["jitter"] = "jitter"


class PathingInertModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["inert"] = "inert"


class PathingRoadModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["road"] = "road"
    profile: str = "car"
    allow_alternatives: bool = False
    alternative_probability: float = Field(default=0.0, ge=0.0, le=1.0)
    max_weight_factor: float = 2.0
    max_paths: int = Field(default=5, ge=1)


PathingUnion = Annotated[
    PathingBeelineModel | PathingJitterModel | PathingInertModel | PathingRoadModel,
    Field(discriminator="kind"),
]


class MobilityModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = True
    pathing: PathingUnion = Field(default_factory=PathingJitterModel)
    accident_at: float | None = None


# ----------------- DEVICES ---------------------


class DeviceModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: int
    name: str
    role: Literal["user", "fcn", "fon", "cloud"]
    level: int = Field(ge=0)
    lat: float
    lon: float
    parent: int | None = None
    uplink_latency: float = 0.0
    behaviour: Literal["generic", "immobile", "ambulance", "opera"] | None = None
    speed: float = Field(default=1.4, gt=0)  # m/s, walking pace
    concert_start: float | None = None
    pathing: PathingUnion | None = None

    @model_validator(mode="after")
    def _user_fields(self):
        if self.role == "user" and self.behaviour is None:
            self.behaviour = "generic"
        if self.role != "user" and self.behaviour is not None:
            raise ValueError(f"device {self.id}: only users carry a mobility behaviour")
        if self.behaviour == "opera" and self.concert_start is None:
            raise ValueError(f"device {self.id}: opera users need concert_start")
        return self


# ------------------------------------------------------------------


class ScenarioModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "scenario"
    run_id: str = "local"
    sim: SimModel = SimModel()
    log: LogModel = LogModel()
    location: LocationModel = LocationModel()
    latency: LatencyModelCfg = LatencyModelCfg()
    mobility: MobilityModel = MobilityModel()
    devices: list[DeviceModel] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self):
        ids = [d.id for d in self.devices]
        dup = {i for i in ids if ids.count(i) > 1}
        if dup:
            raise ValueError(f"duplicate device ids {sorted(dup)}")
        known = set(ids)
        for d in self.devices:
            if d.parent is not None and d.parent not in known:
                raise ValueError(f"device {d.id}: unknown parent {d.parent}")
        return self
