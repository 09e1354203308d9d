WIDTH = 1600
HEIGHT = 900
FULLSCREEN = False
FOV = 75
FPS = 60
VSYNC = True
# Background (radial-ish gradient is faked with the clear color + grid fog)
BACKGROUND = (0.06, 0.0, 0.12, 1.0)
FOGDENSITY = 0.02
# Orbit camera
CAMERA_TARGET = (0.0, 0.0, 0.0)
CAMERA_DISTANCE = 17.0
CAMERA_MIN_DISTANCE = 2.0
CAMERA_MAX_DISTANCE = 120.0
CAMERA_ROTATE_SPEED = 0.004  # radians per mouse pixel
CAMERA_ZOOM_STEP = 0.6  # world units per wheel notch
CAMERA_PAN_SPEED = 0.02
CAMERA_SMOOTH_HZ = 10.0  # easing toward target orbit (0=instant)
# Ground grid
GRID_Y = -5.0
GRID_EXTENT = 50
GRID_CELL = 1.0
GRID_SECTION = 10
GRID_COLOR = (0.2, 0.2, 0.2)
GRID_SECTION_COLOR = (0.4, 0.4, 0.4)
# Scene content
SPAWN_RANGE = 10.0  # new objects land within +-SPAWN_RANGE on each axis
BUILTIN_COLORS = ("#00ffff", "#ff00ff", "#ffff00", "#ff0080", "#00ff80")
CUBE_DEFAULT_COLOR = "#00ffff"
SPHERE_DEFAULT_COLOR = "#ff00ff"
TEXT_DEFAULT_COLOR = "#ffffff"
TEXT_DEFAULT = "AI Generated"
PLACEHOLDER_COLOR = "#ff0088"
SPHERE_SLICES = 32
SPHERE_STACKS = 16
# Generation service
GENERATION_MODEL = "claude-sonnet-4-20250514"
GENERATION_MAX_TOKENS = 2048
GENERATION_MAX_RETRIES = 3
GENERATION_BASE_DELAY = 1.0  # seconds, doubled per retry
GENERATION_WORKERS = 2
API_KEY_ENV = "ANTHROPIC_API_KEY"
CREDENTIALS_PATH = "~/.config/genesis-canvas/credentials.json"
# HUD
HUD_REPORTS = 6
HUD_FONT_SIZE = 22
