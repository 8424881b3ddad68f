from __future__ import annotations

# Window
WINDOW_WIDTH = 1280
WINDOW_HEIGHT = 720
FPS_CAP = 60  # 0 = uncapped

# App
APP_VERSION = "0.3.0"

# Generation
DEFAULT_SEED = 0
DEFAULT_CHUNK_WIDTH = 64  # cells along X (nodes = width + 1)
DEFAULT_CHUNK_DEPTH = 64  # cells along Z (nodes = depth + 1)
DEFAULT_MAX_HEIGHT = 40.0
DEFAULT_RADIUS = 2  # 1 = single chunk, 2 = 3x3, 3 = 5x5, ...

# Noise (fractal)
DEFAULT_NOISE = "fast"
DEFAULT_FREQUENCY = 1.0
DEFAULT_AMPLITUDE = 0.5
DEFAULT_LACUNARITY = 2.0
DEFAULT_GAIN = 0.5
DEFAULT_OCTAVES = 8
DEFAULT_SCALE = 0.01
DEFAULT_NORMALIZE_BIAS = 1.0

# Texture bands (world height after centering around 0)
DEFAULT_SNOW_START = 3.0
DEFAULT_ROCK_START = 0.0
DEFAULT_GRASS_START = -5.0
DEFAULT_SAND_START = -10.0

# Erosion
DEFAULT_EROSION_ITERATIONS = 0  # droplets per chunk; 0 disables erosion

# Chunk seed hashing (spatial hash primes)
SEED_HASH_X = 73856093
SEED_HASH_Z = 19349663

# Atlas
ATLAS_SIZE = 512
UV_INSET = 0.001  # keeps bilinear filtering inside the selected tile

# Rendering
FOV_DEG = 60.0
NEAR = 0.1
FAR = 2000.0
FOG_START = 250.0
FOG_END = 600.0
LIGHT_DIR = (0.35, 0.9, 0.2)  # will be normalized in shader

# Camera
DEFAULT_ORBIT_DISTANCE = 220.0
DEFAULT_ORBIT_PITCH = 0.65  # radians above the horizon
ORBIT_YAW_RATE = 1.2  # rad/sec
ORBIT_ZOOM_RATE = 120.0  # units/sec
ORBIT_SMOOTH_K = 6.0
