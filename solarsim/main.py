import gzip
import json
import logging
import os
import time

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from solarsim.errors import (
    BodyNotFoundError,
    SolarSimError,
    UnknownScenarioError,
)
from solarsim.integrators import make_integrator
from solarsim.physics import run_simulation
from solarsim.scenarios import build_scenario, scenario_names
from solarsim.trajectory import logarithmic_cadence

logging.basicConfig(
    level=os.getenv("SOLARSIM_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

MAX_STEPS = 2_000_000

app = FastAPI()
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("SOLARSIM_CORS_ORIGINS", "http://localhost:5173").split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)


class PerihelionRequest(BaseModel):
    body: str
    reference: str
    threshold: float = Field(gt=0)


class SimulateRequest(BaseModel):
    scenario: str
    integrator: Literal["verlet", "euler"] = "verlet"
    dt: float = Field(0.001, gt=0)
    steps: int = Field(1000, ge=0, le=MAX_STEPS)
    relativity: Optional[bool] = None
    speedOfLight: Optional[float] = Field(None, gt=0)
    centerOfMass: Optional[bool] = False
    track: Optional[List[str]] = Field(None, min_length=2, max_length=2)
    perihelion: Optional[PerihelionRequest] = None
    perihelionFrom: float = Field(0.9, ge=0, le=1)
    sampleEvery: int = Field(0, ge=0)
    logSamples: int = Field(0, ge=0, le=MAX_STEPS)
    profile: Optional[bool] = False


class BodySample(BaseModel):
    name: str
    id: int
    position: List[float]
    velocity: Optional[List[float]] = None


class TrajectorySample(BaseModel):
    t: float
    bodies: List[BodySample]


class Diagnostics(BaseModel):
    bodyCount: int
    relativity: bool
    centerOfMass: List[float]
    momentum: List[float]
    angularMomentum: List[float]
    kineticEnergy: Optional[float] = None
    potentialEnergy: Optional[float] = None
    totalEnergy: Optional[float] = None
    minSeparation: Optional[float] = None
    maxSeparation: Optional[float] = None
    perihelionCoordinates: Optional[List[float]] = None
    eccentricity: Optional[float] = None
    semiMajorAxis: Optional[float] = None


class SimulateResponse(BaseModel):
    system: str
    integrator: str
    dt: float
    stepsRequested: int
    stepsCompleted: int
    completed: bool
    stopReason: str
    error: Optional[str] = None
    simulatedYears: float
    initialEnergy: Optional[float] = None
    finalEnergy: Optional[float] = None
    relativeEnergyDrift: Optional[float] = None
    diagnostics: Diagnostics
    samples: List[TrajectorySample]
    meta: dict


@app.get("/api/scenarios")
def scenarios():
    return {"scenarios": scenario_names()}


@app.post("/api/simulate", response_model=SimulateResponse)
def simulate(req: SimulateRequest):
    """
    Build the requested scenario, integrate it and return the diagnostics.
    A run that hits a numerical singularity still returns 200, with
    ``completed`` false and ``stopReason`` set to ``"singularity"``.
    """
    profile_enabled = bool(req.profile)
    timings = {}

    try:
        build_start = time.perf_counter()
        system = build_scenario(req.scenario)
        if req.relativity is not None:
            system.relativity = req.relativity
        if req.speedOfLight is not None:
            system.speed_of_light = req.speedOfLight
        if req.centerOfMass:
            system.apply_center_of_mass_shift()
        integrator = make_integrator(req.integrator, req.dt)
        timings["build_scenario"] = (time.perf_counter() - build_start) * 1000.0

        perihelion = None
        if req.perihelion is not None:
            perihelion = (req.perihelion.body, req.perihelion.reference, req.perihelion.threshold)
        result = run_simulation(
            system,
            integrator,
            req.steps,
            track=tuple(req.track) if req.track else None,
            perihelion=perihelion,
            perihelion_from=req.perihelionFrom,
            sample_every=req.sampleEvery,
            sample_steps=logarithmic_cadence(req.steps, req.logSamples),
        )
    except (UnknownScenarioError, BodyNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0])) from exc
    except SolarSimError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    timings.update(result.timings_ms)
    meta = {"dt": req.dt, "steps": req.steps}
    response_payload = {
        "system": result.system_name,
        "integrator": result.integrator,
        "dt": result.dt,
        "stepsRequested": result.steps_requested,
        "stepsCompleted": result.steps_completed,
        "completed": result.completed,
        "stopReason": result.stop_reason,
        "error": result.error,
        "simulatedYears": result.simulated_years,
        "initialEnergy": result.initial_energy,
        "finalEnergy": result.final_energy,
        "relativeEnergyDrift": result.relative_energy_drift,
        "diagnostics": result.diagnostics,
        "samples": result.samples,
        "meta": meta,
    }

    if profile_enabled:
        serialize_start = time.perf_counter()
        serialized = json.dumps(response_payload, separators=(",", ":")).encode("utf-8")
        timings["serialize_response_json"] = (time.perf_counter() - serialize_start) * 1000.0
        meta["profile"] = {
            "timingsMs": timings,
            "payloadBytes": len(serialized),
            "payloadGzipBytes": len(gzip.compress(serialized)),
            "serverTimestamp": time.time(),
        }

    return response_payload
