"""FastAPI main application."""

import threading
import time
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import structlog
from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..config import settings
from ..core.errors import ConfigurationError, UnknownCellError
from ..core.pathfinding import find_path, path_cost
from ..core.world_generator import WorldGenerationParams, generate
from ..core.world_state import WorldRegistry, WorldSnapshot
from ..utils.logging import configure_logging
from ..utils.random import create_prng

# Configure logging
configure_logging(settings.log_level, settings.log_format)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="World Generator API",
    description="Procedural terrain and pathfinding for strategy maps",
    version="0.1.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

registry = WorldRegistry(max_maps=settings.max_maps)


# Request/Response models
class MapGenerationRequest(BaseModel):
    """Request to generate a new map."""

    seed: Optional[str] = Field(None, description="Base36 seed for reproducible generation")
    width: float = Field(16.0, gt=0, le=256, description="Domain width")
    height: float = Field(9.0, gt=0, le=256, description="Domain height")
    plate_count: int = Field(10, ge=1, description="Number of tectonic plates")
    plate_size: int = Field(10, ge=1, description="Plate partition cells per plate")
    continent_count: int = Field(55, ge=1, description="Continent seeds")
    continent_size: int = Field(350, ge=1, description="Map cells per continent seed")
    ocean_count: int = Field(66, ge=0, description="Ocean seeds")
    ocean_size: int = Field(250, ge=1, description="Map cells per ocean seed")
    scale: float = Field(30.0, gt=0, description="World units per domain unit")
    height_scale: float = Field(20.0, gt=0, description="World units per unit of height")


class JobResponse(BaseModel):
    """Response with job information."""

    job_id: str
    status: str
    message: str
    seed: Optional[str] = None
    map_id: Optional[str] = None
    error_message: Optional[str] = None


class MapSummary(BaseModel):
    """Summary information about a generated map."""

    id: str
    seed: Optional[str]
    cells_count: int
    land_fraction: float
    plates_count: int
    boundary_edges_count: int
    navigation_edges_count: int
    bounds: Tuple[Tuple[float, float], Tuple[float, float]]
    version: int
    created_at: datetime
    generation_time_seconds: Optional[float]


class CellInfo(BaseModel):
    """Data for a single cell."""

    cell_id: int
    height: float
    elevation: float
    is_water: bool
    position: Tuple[float, float]
    neighbors: List[int]
    plate_id: Optional[int] = None
    continent_id: Optional[int] = None
    river_flow: Optional[float] = None


class LocateResponse(BaseModel):
    x: float
    y: float
    cell_id: int


class PathResponse(BaseModel):
    """Path between two cells, listed goal first."""

    start: int
    goal: int
    reachable: bool
    path: List[int] = Field(default_factory=list)
    cost: Optional[float] = None


class _Job:
    def __init__(self, job_id: str, seed: str):
        self.job_id = job_id
        self.seed = seed
        self.status = "pending"
        self.map_id = None
        self.error_message = None

    def to_response(self) -> JobResponse:
        return JobResponse(job_id=self.job_id, status=self.status,
                           message=f"Job {self.status}", seed=self.seed,
                           map_id=self.map_id, error_message=self.error_message)


_jobs: Dict[str, _Job] = {}
_jobs_lock = threading.Lock()


def _get_snapshot(map_id: str) -> WorldSnapshot:
    snapshot = registry.get(map_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Map not found")
    return snapshot


def _summary(snapshot: WorldSnapshot) -> MapSummary:
    world = snapshot.world_map
    low, high = world.bounds()
    return MapSummary(
        id=snapshot.map_id,
        seed=world.seed,
        cells_count=world.cell_count,
        land_fraction=world.land_fraction(),
        plates_count=len(world.plates),
        boundary_edges_count=len(world.boundary_edges),
        navigation_edges_count=snapshot.graph.edge_count,
        bounds=((float(low[0]), float(low[1])), (float(high[0]), float(high[1]))),
        version=snapshot.version,
        created_at=snapshot.created_at,
        generation_time_seconds=snapshot.generation_time_seconds,
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    logger.info("Starting World Generator API", max_maps=settings.max_maps,
                max_cells=settings.max_cells)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down World Generator API")


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "World Generator API",
        "version": "0.1.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "maps": len(registry)}


@app.post("/maps/generate", response_model=JobResponse)
async def generate_map(request: MapGenerationRequest, background_tasks: BackgroundTasks):
    """
    Start map generation job.

    Returns immediately with job ID. Use /jobs/{job_id} to check status.
    """
    logger.info("Map generation requested", request=request.model_dump())

    params = request.model_dump(exclude={"seed"})
    try:
        config = WorldGenerationParams(**params)
        prng = create_prng(request.seed)
    except (ConfigurationError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    if config.map_cells > settings.max_cells:
        raise HTTPException(
            status_code=422,
            detail=f"Requested {config.map_cells} cells, limit is {settings.max_cells}")

    job = _Job(str(uuid.uuid4()), prng.seed)
    with _jobs_lock:
        _jobs[job.job_id] = job

    background_tasks.add_task(run_map_generation, job, config, prng)
    return job.to_response()


@app.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job_status(job_id: str):
    """Get status of a map generation job."""
    with _jobs_lock:
        job = _jobs.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job.to_response()


@app.get("/maps", response_model=List[MapSummary])
async def list_maps():
    """List generated maps, newest first."""
    return [_summary(snapshot) for snapshot in registry.list()]


@app.get("/maps/{map_id}", response_model=MapSummary)
async def get_map(map_id: str):
    """Get map details."""
    return _summary(_get_snapshot(map_id))


@app.get("/maps/{map_id}/cells/{cell_id}", response_model=CellInfo)
async def get_cell(map_id: str, cell_id: int):
    """Get height and membership data for a cell."""
    world = _get_snapshot(map_id).world_map
    try:
        x, y = world.position(cell_id)
        return CellInfo(
            cell_id=cell_id,
            height=world.height(cell_id),
            elevation=world.elevation(cell_id),
            is_water=world.is_water(cell_id),
            position=(float(x), float(y)),
            neighbors=world.neighbors(cell_id),
            plate_id=int(world.plate_ids[cell_id]) if world.plate_ids is not None else None,
            continent_id=(int(world.continent_ids[cell_id])
                          if world.continent_ids is not None else None),
            river_flow=(float(world.river_flow[cell_id])
                        if world.river_flow is not None else None),
        )
    except UnknownCellError:
        raise HTTPException(status_code=400, detail="Invalid cell index")


@app.get("/maps/{map_id}/locate", response_model=LocateResponse)
async def locate(map_id: str, x: float, y: float):
    """Find the cell containing a world position."""
    world = _get_snapshot(map_id).world_map
    cell_id = world.cell_for_position((x, y))
    if cell_id is None:
        raise HTTPException(status_code=404, detail="No cell at position")
    return LocateResponse(x=x, y=y, cell_id=cell_id)


@app.get("/maps/{map_id}/path", response_model=PathResponse)
def get_path(map_id: str, start: int, goal: int, max_expansions: Optional[int] = None):
    """
    Find a path between two cells.

    The path is listed goal first; ``reachable`` is false when no path exists.
    """
    graph = _get_snapshot(map_id).graph
    try:
        path = find_path(graph, start, goal, max_expansions=max_expansions)
    except UnknownCellError:
        raise HTTPException(status_code=400, detail="Invalid cell index")

    if path is None:
        return PathResponse(start=start, goal=goal, reachable=False)
    return PathResponse(start=start, goal=goal, reachable=True, path=path,
                        cost=path_cost(graph, path))


# Background task functions
def run_map_generation(job, config: WorldGenerationParams, prng):
    """
    Background task to generate a map.
    """
    logger.info("Starting map generation", job_id=job.job_id, seed=job.seed)
    job.status = "running"
    started = time.perf_counter()

    try:
        world = generate(config, prng)
        snapshot = registry.publish(world,
                                    generation_time_seconds=time.perf_counter() - started)
        job.map_id = snapshot.map_id
        job.status = "completed"
        logger.info("Map generation completed", job_id=job.job_id, map_id=snapshot.map_id)

    except Exception as e:
        logger.error("Map generation failed", job_id=job.job_id, error=str(e))
        job.status = "failed"
        job.error_message = str(e)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
