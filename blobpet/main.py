#!/usr/bin/env python3
"""
pygame front-end for the blob.

Reads BlobView snapshots from BlobEngine and turns mouse/keyboard input into
engine actions. It keeps no simulation state of its own.
"""

import sys
import math
import time
import logging
import pygame
from typing import Optional, Tuple

from blobpet.constants import *
from blobpet.models import Action, BlobView, Mood, MouthState
from blobpet.database import open_store
from blobpet.blob_entity import BlobEngine

logger = logging.getLogger(__name__)

FOOD_KEYS = {
    pygame.K_1: FOODS[0]['emoji'],
    pygame.K_2: FOODS[1]['emoji'],
    pygame.K_3: FOODS[2]['emoji'],
    pygame.K_4: FOODS[3]['emoji'],
    pygame.K_5: FOODS[4]['emoji'],
    pygame.K_6: FOODS[5]['emoji'],
}


class GestureTracker:
    """Turns raw button/motion events into tap, double tap, long press and drag.

    Times are in real seconds supplied by the caller, so tests can drive it
    without sleeping.
    """

    def __init__(self):
        self.press_pos: Optional[Tuple[int, int]] = None
        self.press_time = 0.0
        self.dragging = False
        self.long_pressed = False
        self.pending_tap_time: Optional[float] = None

    def press(self, pos, now):
        self.press_pos = pos
        self.press_time = now
        self.dragging = False
        self.long_pressed = False

    def move(self, pos):
        """Returns 'start', 'move' or None."""
        if self.press_pos is None or self.long_pressed:
            return None
        if self.dragging:
            return 'move'
        if math.dist(pos, self.press_pos) >= DRAG_START_PIXELS:
            self.dragging = True
            return 'start'
        return None

    def release(self, now):
        """Returns 'drag_end', 'double_tap', or None (a tap is left pending)."""
        if self.press_pos is None:
            return None
        was_dragging, was_long = self.dragging, self.long_pressed
        self.press_pos = None
        self.dragging = False
        self.long_pressed = False
        if was_dragging:
            return 'drag_end'
        if was_long:
            return None
        if self.pending_tap_time is not None and now - self.pending_tap_time <= DOUBLE_CLICK_SECONDS:
            self.pending_tap_time = None
            return 'double_tap'
        self.pending_tap_time = now
        return None

    def poll(self, now):
        """Returns 'tap' or 'long_press' once their timing settles, else None."""
        if (self.press_pos is not None and not self.dragging and not self.long_pressed
                and now - self.press_time >= LONG_PRESS_SECONDS):
            self.long_pressed = True
            self.pending_tap_time = None
            return 'long_press'
        if self.pending_tap_time is not None and now - self.pending_tap_time > DOUBLE_CLICK_SECONDS:
            self.pending_tap_time = None
            return 'tap'
        return None


class GameEngine:
    """Manages the window, the event loop and drawing of the blob."""

    def add_game_message(self, text):
        """Add message to log"""
        self.messages.append(text)
        self.messages = self.messages[-12:]
        self.hud_text = text
        self.hud_expiry = self.elapsed + 3.0

    def __init__(self, save_file=None):
        pygame.init()
        try:
            self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT), pygame.SCALED | pygame.RESIZABLE)
        except pygame.error:
            # Some headless drivers do not support scaled/resizable; fall back
            self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
        pygame.display.set_caption("Blob Pet")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 28)
        self.small_font = pygame.font.Font(None, 20)

        self.messages = []
        self.hud_text = None
        self.hud_expiry = 0.0
        self.elapsed = 0.0
        self._last_step_time = time.time()
        self.gestures = GestureTracker()
        # Expose some drawing flags for tests
        self._last_drawn_blob = {}

        self.blob = BlobEngine(open_store(save_file or SAVE_FILE), name="Blob",
                               message_callback=self.add_game_message,
                               viewport=(SCREEN_WIDTH, SCREEN_HEIGHT))
        self.view: BlobView = self.blob.view()
        self.blob.subscribe(self._on_blob_changed)
        self.blob.start()

    def _on_blob_changed(self, view: BlobView):
        self.view = view

    # ===== Input =====

    def _blob_radius(self):
        return 60 * max(self.view.scale, 0.5)

    def _hits_blob(self, pos):
        return math.dist(pos, self.view.position) <= self._blob_radius()

    def handle_event(self, event):
        """Forward one pygame event to the engine. Returns False on quit."""
        if event.type == pygame.QUIT:
            return False
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                return False
            if event.key in FOOD_KEYS:
                self.blob.dispatch(Action.FEED, FOOD_KEYS[event.key])
            elif event.key == pygame.K_s:
                self.blob.dispatch(Action.MOTION, *MOTION_SAMPLE_SHAKE)
            elif event.key == pygame.K_z:
                self.blob.dispatch(Action.SLEEP)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self._hits_blob(event.pos):
                self.gestures.press(event.pos, self.elapsed)
        elif event.type == pygame.MOUSEMOTION:
            kind = self.gestures.move(event.pos)
            if kind == 'start':
                self.blob.dispatch(Action.DRAG_START, event.pos)
            elif kind == 'move':
                self.blob.dispatch(Action.DRAG_MOVE, event.pos)
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            kind = self.gestures.release(self.elapsed)
            if kind == 'drag_end':
                self.blob.dispatch(Action.DRAG_END, self.screen.get_size())
            elif kind == 'double_tap':
                self.blob.dispatch(Action.SPLIT)
        return True

    def _poll_gestures(self):
        kind = self.gestures.poll(self.elapsed)
        if kind == 'tap':
            self.blob.dispatch(Action.BOUNCE)
        elif kind == 'long_press':
            self.blob.dispatch(Action.LONG_PRESS)

    # ===== Main Loop =====

    def step(self, dt=None):
        """Process a single loop iteration (useful for headless tests). Returns False to stop."""
        now = time.time()
        if dt is None:
            dt = min(now - self._last_step_time, 0.1)  # Cap dt to avoid large jumps
        self._last_step_time = now
        self.elapsed += dt

        for event in pygame.event.get():
            if not self.handle_event(event):
                return False
        self._poll_gestures()
        self.blob.tick(dt * TIME_SCALE)

        self.draw()
        pygame.display.flip()
        self.clock.tick(FPS)
        return True

    def run(self):
        running = True
        while running:
            running = self.step()
        self.blob.stop()
        pygame.quit()

    # ===== Drawing Methods =====

    def draw(self):
        view = self.view
        mood_color = MOOD_COLORS[view.mood.value]
        self.screen.fill(COLOR_BG)
        self.draw_trail(view, mood_color)
        self.draw_blob(view, mood_color)
        self.draw_stats(view)
        if view.show_achievement:
            self.draw_achievement(view.latest_achievement)
        if self.hud_text and self.elapsed < self.hud_expiry:
            hud = self.small_font.render(self.hud_text, True, COLOR_TEXT)
            self.screen.blit(hud, (10, SCREEN_HEIGHT - 30))

    def draw_trail(self, view, color):
        count = len(view.slime_trail)
        for index, point in enumerate(view.slime_trail):
            size = 5 + index * 2
            fade = index / max(count - 1, 1)
            shade = tuple(int(c * (0.3 + 0.4 * fade)) for c in color)
            pygame.draw.circle(self.screen, shade, (int(point[0]), int(point[1])), size // 2)

    def draw_blob(self, view, color):
        cx, cy = int(view.position[0]), int(view.position[1])
        if view.is_stretching:
            width, height = 160, 80
        elif view.is_inflated:
            width, height = 200, 200
        else:
            width, height = 120, 120
        if view.is_dragging:
            factor = 1.2
        elif view.is_bouncing:
            factor = 1.4
        else:
            factor = view.scale
        width, height = int(width * factor), int(height * factor)
        wobble = int(8 * math.sin(self.elapsed * 40)) if view.is_shaking else 0

        body = pygame.Rect(0, 0, width, height)
        body.center = (cx + wobble, cy)
        pygame.draw.ellipse(self.screen, color, body)

        if view.mood == Mood.EXCITED or view.show_particles:
            for i in range(8):
                angle = i * math.pi / 4
                px = cx + math.cos(angle) * (width / 2 + 10)
                py = cy + math.sin(angle) * (height / 2 + 10)
                pygame.draw.circle(self.screen, COLOR_PARTICLE, (int(px), int(py)), 4)

        eye_gap = 30 if view.is_inflated else 20
        eye_y = cy - 10
        for ex in (cx + wobble - eye_gap, cx + wobble + eye_gap):
            pygame.draw.circle(self.screen, COLOR_EYE_WHITE, (ex, eye_y), 12)
            if view.is_asleep or view.mood == Mood.SLEEPY:
                pygame.draw.rect(self.screen, COLOR_PUPIL, (ex - 10, eye_y - 1, 20, 3))
            else:
                pupil = (255, 0, 0) if view.mood == Mood.EXCITED else (
                    (128, 128, 128) if view.mood == Mood.NEGLECTED else COLOR_PUPIL)
                pygame.draw.circle(self.screen, pupil, (ex, eye_y), 6)

        self.draw_mouth(view.mouth, (cx + wobble, cy + 22))
        self._last_drawn_blob = {
            "size": (width, height),
            "mouth": view.mouth,
            "mood": view.mood,
            "asleep": view.is_asleep,
        }

    def draw_mouth(self, mouth, center):
        mx, my = center
        rect = pygame.Rect(mx - 14, my - 6, 28, 12)
        if mouth == MouthState.WIDE_OPEN:
            pygame.draw.ellipse(self.screen, COLOR_MOUTH, rect.inflate(0, 10))
        elif mouth == MouthState.CHEWING:
            phase = int(self.elapsed * 10) % 2
            pygame.draw.ellipse(self.screen, COLOR_MOUTH, rect.inflate(-8, -4 + phase * 4))
        elif mouth == MouthState.SMILING:
            pygame.draw.arc(self.screen, COLOR_MOUTH, rect.move(0, -6), math.pi, 2 * math.pi, 3)
        elif mouth == MouthState.FROWN:
            pygame.draw.arc(self.screen, COLOR_MOUTH, rect.move(0, 4), 0, math.pi, 3)
        else:
            # closed and flat
            pygame.draw.line(self.screen, COLOR_MOUTH, (mx - 10, my), (mx + 10, my), 3)

    def draw_stats(self, view):
        values = {"hunger": view.hunger, "energy": view.energy, "happiness": view.happiness}
        x = SCREEN_WIDTH - 150
        y = 16
        for bar in STAT_BARS:
            label = self.small_font.render(bar['label'], True, COLOR_TEXT)
            self.screen.blit(label, (x, y))
            pygame.draw.rect(self.screen, COLOR_UI_BAR_BG, (x + 60, y + 4, 70, 8), border_radius=4)
            width = int(70 * max(0.0, min(1.0, values[bar['key']])))
            if width > 0:
                pygame.draw.rect(self.screen, bar['color'], (x + 60, y + 4, width, 8), border_radius=4)
            y += 22

    def draw_achievement(self, name):
        panel = pygame.Rect(20, SCREEN_HEIGHT - 180, SCREEN_WIDTH - 40, 70)
        pygame.draw.rect(self.screen, COLOR_POPUP_BG, panel, border_radius=15)
        pygame.draw.rect(self.screen, COLOR_POPUP_BORDER, panel, 2, border_radius=15)
        title = self.font.render("Achievement Unlocked!", True, COLOR_POPUP_BORDER)
        self.screen.blit(title, (panel.x + 16, panel.y + 10))
        text = self.small_font.render(name, True, COLOR_TEXT)
        self.screen.blit(text, (panel.x + 16, panel.y + 40))


def main():
    logging.basicConfig(level=logging.INFO)
    logger.info("Starting Blob Pet...")
    game = GameEngine()
    try:
        game.run()
    except Exception:
        logger.exception("Blob Pet crashed")
        game.blob.save()
        raise
    sys.exit()


if __name__ == "__main__":
    main()
