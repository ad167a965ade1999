# fog_mobility/app/wiring.py
from fog_mobility.app.controllers.mobility import MobilityController
from fog_mobility.app.events import AccidentBroadcast, MakePath, MovementUpdate
from fog_mobility.sim.kernel import Kernel


def wire(kernel: Kernel, *, mobility: MobilityController) -> None:
    k = kernel

    # per-device movement cycle
    k.on(MovementUpdate, mobility.on_movement_update)
    k.on(MakePath, mobility.on_make_path)

    # external disruptions
    k.on(AccidentBroadcast, mobility.on_accident)
