# fog_mobility/app/build.py
from collections.abc import Mapping
from dataclasses import dataclass

from fog_mobility.app.controllers.mobility import MobilityController
from fog_mobility.app.events import AccidentBroadcast
from fog_mobility.app.protocols import MobilityStrategy, RoutingOracle
from fog_mobility.app.wiring import wire
from fog_mobility.config.models import ScenarioModel
from fog_mobility.domain.entities.device import DeviceRole, FogNode
from fog_mobility.domain.entities.geography import Location
from fog_mobility.domain.mobility.context import MobilityContext
from fog_mobility.domain.mobility.state import DeviceMobilityState
from fog_mobility.domain.mobility.strategy import FullMobilityStrategy, NoMobilityStrategy
from fog_mobility.domain.topology import Topology
from fog_mobility.io.config import build_context, load_scenario
from fog_mobility.io.kernel_logging import KernelLogging  # JSON logs
from fog_mobility.io.recorder import JsonlSink, MemorySink, Recorder
from fog_mobility.runtime.registries import make_pathing, make_state
from fog_mobility.services.location_registry import LocationRegistry
from fog_mobility.sim.clock import SimClock
from fog_mobility.sim.hooks import NoopHooks
from fog_mobility.sim.kernel import Kernel
from fog_mobility.sim.rng import RNGRegistry


@dataclass
class App:
    kernel: Kernel
    clock: SimClock
    rng: RNGRegistry
    context: MobilityContext
    topology: Topology
    states: dict[int, DeviceMobilityState]
    registry: LocationRegistry
    strategy: MobilityStrategy
    mobility: MobilityController
    recorder: Recorder

    def run(self, until: float | None = None) -> int:
        return self.kernel.run(until=self.context.max_simulation_time if until is None else until)


def build(
    cfg: ScenarioModel | Mapping,
    *,
    worker: int = 0,
    use_logging: bool = True,
    routing_oracle: RoutingOracle | None = None,
    record_to_memory: bool = False,
    pathing_seed: int | None = None,
) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, ScenarioModel) else load_scenario(cfg)

    # 1) Clock & RNG
    clock = SimClock.utc_epoch(*model.sim.epoch)
    rng_registry = RNGRegistry(model.sim.seed, scenario=model.name, worker=worker)

    # 2) Kernel (with hooks)
    recorder = Recorder(MemorySink()) if record_to_memory else Recorder(JsonlSink())
    hooks = (
        KernelLogging(
            run_id=model.run_id,
            clock=clock,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
        if use_logging
        else NoopHooks()
    )
    kernel = Kernel(hooks=hooks)

    # 3) Context, roster & mobility states
    context = build_context(model)
    nodes = [FogNode(d.id, d.name, DeviceRole(d.role), d.level) for d in model.devices]
    user_level = max((d.level for d in model.devices), default=0)

    states: dict[int, DeviceMobilityState] = {}
    for d in model.devices:
        if d.role != "user":
            continue
        seed = rng_registry.seed_for("pathing", d.id)
        pathing_cfg = d.pathing or model.mobility.pathing
        pathing = make_pathing(pathing_cfg, seed=seed, deps={"routing_oracle": routing_oracle})
        states[d.id] = make_state(
            d, deps={"pathing": pathing, "context": context, "clock": kernel, "seed": seed}
        )

    # 4) Topology oracle
    registry = LocationRegistry(context, states, user_level=user_level)
    for d in model.devices:
        registry.register_resource(d.id, Location(d.lat, d.lon), d.level)

    # 5) Strategy & controller
    topology = Topology(nodes)
    parents = {d.id: d.parent for d in model.devices}
    uplinks = {d.id: d.uplink_latency for d in model.devices if d.parent is not None}
    strategy: MobilityStrategy
    if model.mobility.enabled:
        strategy = FullMobilityStrategy(
            states, topology, kernel, recorder=recorder, run_id=model.run_id
        )
        strategy.initialize([d.id for d in model.devices], parents, uplink_latency=uplinks)
    else:
        strategy = NoMobilityStrategy()
        topology.load(parents, uplink_latency=uplinks)

    mobility = MobilityController(
        strategy, states, registry, kernel, recorder=recorder, run_id=model.run_id
    )

    # 6) Wiring
    wire(kernel, mobility=mobility)
    if pathing_seed is not None:
        mobility.set_pathing_seeds(pathing_seed)

    # 7) Seed start events
    t0 = 0.0
    if model.mobility.enabled:
        for device_id in sorted(states):
            kernel.schedule_all(mobility.start_device_mobility(device_id, t0))
        if model.mobility.accident_at is not None:
            kernel.schedule(AccidentBroadcast(t=model.mobility.accident_at))

    return App(
        kernel=kernel,
        clock=clock,
        rng=rng_registry,
        context=context,
        topology=topology,
        states=states,
        registry=registry,
        strategy=strategy,
        mobility=mobility,
        recorder=recorder,
    )
