import os

# --- GLOBAL CONFIGURATION ---
SCREEN_WIDTH = 480
SCREEN_HEIGHT = 800
FPS = int(os.getenv("BLOBPET_FPS", "30"))
SAVE_FILE = os.getenv("BLOBPET_SAVE_FILE", "blob_state.json")
# 1 = real time, 10 = 10x faster! Only the front-end applies it.
TIME_SCALE = float(os.getenv("BLOBPET_TIME_SCALE", "1.0"))
# What a long press does: "inflate" or "sleep"
LONG_PRESS_ACTION = os.getenv("BLOBPET_LONG_PRESS", "inflate")

# --- PERSISTENCE KEYS ---
KEY_HUNGER = "BlobHunger"
KEY_ENERGY = "BlobEnergy"
KEY_HAPPINESS = "BlobHappiness"
KEY_SCALE = "BlobScale"
KEY_TOTAL_FEEDINGS = "TotalFeedings"
KEY_TOTAL_BOUNCES = "TotalBounces"
KEY_ACHIEVEMENTS = "Achievements"

# Loaded values of 0 (or missing) fall back to these.
DEFAULT_HUNGER = 0.5
DEFAULT_ENERGY = 0.8
DEFAULT_HAPPINESS = 0.7
DEFAULT_SCALE = 1.0

# --- DECAY (time-units are seconds) ---
HUNGER_DECAY_INTERVAL = 30.0
HUNGER_DECAY_AMOUNT = 0.1
ENERGY_DECAY_INTERVAL = 45.0
ENERGY_DECAY_AMOUNT = 0.05

# --- MOOD THRESHOLDS ---
NEGLECT_HUNGER = 0.2
NEGLECT_ENERGY = 0.2
NEGLECT_HAPPINESS = 0.3
HUNGRY_BELOW = 0.3
SLEEPY_BELOW = 0.3
VERY_HAPPY_ABOVE = 0.7

# --- ACTION TUNABLES ---
FEED_CHEW_DELAY = 0.3
FEED_SMILE_DELAY = 1.0
FEED_SETTLE_DELAY = 2.0
FEED_SCALE_STEP = 0.05
MAX_SCALE = 1.5

BOUNCE_DURATION = 0.3
BOUNCE_HAPPINESS = 0.1
TAP_IDLE_TIMEOUT = 3.0
TAPS_FOR_WORKOUT = 5

WORKOUT_DURATION = 0.5
WORKOUT_ENERGY = 0.2
WORKOUT_HUNGER_COST = 0.1

SLEEP_TICK_INTERVAL = 5.0
SLEEP_ENERGY_STEP = 0.1
WAKE_ENERGY = 0.8

SPLIT_SCALE = 0.7
SPLIT_HAPPINESS = 0.15
SPLIT_DURATION = 1.0

INFLATE_HAPPINESS = 0.1
INFLATE_DURATION = 2.0

SHAKE_THRESHOLD = 2.0
SHAKE_HAPPINESS = 0.2
SHAKE_DURATION = 2.0

DRAG_HAPPINESS = 0.05
BLOB_MARGIN = 60.0           # distance kept between blob centre and the viewport edge
BOUNCE_DAMPING = 0.8         # velocity kept after reflecting off an edge
SLIME_TRAIL_LENGTH = 20
SLIME_TRAIL_FADE = 2.0
START_POSITION = (200.0, 400.0)

ACHIEVEMENT_POPUP_DURATION = 2.0

# Low-need warnings for the message log
WARN_HUNGRY_BELOW = 0.3
WARN_TIRED_BELOW = 0.3

# --- FOOD TABLE ---
# hunger / happiness / energy deltas. Looked up by emoji or by name.
FOODS = [
    {'id': 'apple', 'emoji': '🍎', 'hunger': 0.3, 'happiness': 0.1, 'energy': 0.0},
    {'id': 'cake', 'emoji': '🍰', 'hunger': 0.4, 'happiness': 0.3, 'energy': -0.1},
    {'id': 'carrot', 'emoji': '🥕', 'hunger': 0.2, 'happiness': 0.1, 'energy': 0.0},
    {'id': 'cookie', 'emoji': '🍪', 'hunger': 0.3, 'happiness': 0.2, 'energy': 0.0},
    {'id': 'banana', 'emoji': '🍌', 'hunger': 0.2, 'happiness': 0.2, 'energy': 0.0},
    {'id': 'grape', 'emoji': '🍇', 'hunger': 0.1, 'happiness': 0.1, 'energy': 0.0},
]
DEFAULT_FOOD = {'id': 'default', 'emoji': '', 'hunger': 0.2, 'happiness': 0.1, 'energy': 0.0}

# --- ACHIEVEMENTS (evaluated in this order) ---
ACHIEVEMENTS = [
    {'name': 'First Meal', 'stat': 'total_feedings', 'threshold': 1},
    {'name': 'Food Lover', 'stat': 'total_feedings', 'threshold': 10},
    {'name': 'First Bounce', 'stat': 'total_bounces', 'threshold': 1},
    {'name': 'Bouncy Castle', 'stat': 'total_bounces', 'threshold': 25},
    {'name': 'Pure Joy', 'stat': 'happiness', 'threshold': 1.0},
    {'name': 'Big Blob', 'stat': 'scale', 'threshold': 1.4},
]

# --- FRONT-END ---
LONG_PRESS_SECONDS = 0.5
DOUBLE_CLICK_SECONDS = 0.3
DRAG_START_PIXELS = 8
MOTION_SAMPLE_SHAKE = (1.5, 1.5, 1.5)  # magnitude ~2.6, used by the S key

COLOR_BG = (20, 20, 28)
COLOR_TEXT = (235, 235, 235)
COLOR_UI_BAR_BG = (62, 68, 81)
COLOR_EYE_WHITE = (255, 255, 255)
COLOR_PUPIL = (0, 0, 0)
COLOR_MOUTH = (40, 20, 20)
COLOR_PARTICLE = (255, 215, 0)
COLOR_POPUP_BG = (0, 0, 0)
COLOR_POPUP_BORDER = (255, 215, 0)

MOOD_COLORS = {
    'happy': (80, 200, 120),
    'hungry': (255, 165, 0),
    'sleepy': (147, 112, 219),
    'excited': (255, 105, 180),
    'neglected': (128, 128, 128),
}

STAT_BARS = [
    {'key': 'hunger', 'label': 'Food', 'color': (255, 165, 0)},
    {'key': 'energy', 'label': 'Energy', 'color': (255, 215, 0)},
    {'key': 'happiness', 'label': 'Joy', 'color': (80, 200, 120)},
]
