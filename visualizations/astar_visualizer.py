import os
import sys
import time
from typing import List, Dict, Any, Optional

import pygame
import socketio
import requests

# ----------------------------- CONFIG ---------------------------------
BACKEND_URL = os.environ.get('PATHFINDER_BACKEND_URL', 'http://localhost:5000')
WINDOW_SIZE = (720, 780)
GRID_PX = 720
FPS = 30
GRID_SIDE = 48
WEIGHTS = [0.0, 1.0, 2.0]

HELP_TEXT = "SPACE play/pause | →/← step | +/- speed | W weight | R run A*"

# ----------------------------- PYGAME SETUP ---------------------------
pygame.init()
screen = pygame.display.set_mode(WINDOW_SIZE)
pygame.display.set_caption('Terrain A* Visualizer')
clock = pygame.time.Clock()
FONT = pygame.font.SysFont('arial', 16)

# ----------------------------- SOCKET.IO ------------------------------
sio = socketio.Client()


# ----------------------------- STATE ----------------------------------
class AStarVisualizer:
    def __init__(self):
        self.result: Optional[Dict[str, Any]] = None
        self.frame_idx: int = 0
        self.playing: bool = False
        self.last_advance: float = time.time()
        self.play_speed: float = 0.02  # seconds per settled cell
        self.weight_idx: int = 1
        self.seed: int = 0

        self.n = GRID_SIDE
        self.start = (GRID_SIDE - 1, 0)
        self.goal = (0, GRID_SIDE - 1)
        # rectangles in cell units, x along columns, y along rows
        self.obstacles = [
            {"x": 12, "y": 8, "w": 3, "h": 30},
            {"x": 28, "y": 0, "w": 3, "h": 26},
            {"x": 30, "y": 34, "w": 14, "h": 3},
        ]

    @property
    def heuristic_weight(self) -> float:
        return WEIGHTS[self.weight_idx]

    # ------------------------------------------------------------------
    def handle_result(self, data):
        self.result = data
        self.frame_idx = 0
        self.playing = True
        print(f"Received A* result: found={data['found']} cost={data['cost']} "
              f"expansions={data['expansions']}")

    def request_run(self):
        self.seed += 1
        try:
            requests.post(f"{BACKEND_URL}/api/run/astar", json={
                "n": self.n,
                "terrain": "height",
                "seed": self.seed,
                "start": list(self.start),
                "goal": list(self.goal),
                "heuristic_weight": self.heuristic_weight,
                "obstacles": self.obstacles,
            }, timeout=30)
        except requests.RequestException as e:
            print("Failed to start A*:", e)

    # ------------------------------------------------------------------
    @property
    def n_frames(self) -> int:
        return len(self.result['settled']) if self.result else 0

    def update(self):
        if self.playing and time.time() - self.last_advance >= self.play_speed:
            if self.frame_idx + 1 >= self.n_frames:
                self.frame_idx = max(0, self.n_frames - 1)
                self.playing = False  # stop at last frame
            else:
                self.frame_idx += 1
            self.last_advance = time.time()

    # ------------------------------------------------------------------
    def _cell_rect(self, r: int, c: int, cell: float) -> pygame.Rect:
        return pygame.Rect(int(c * cell), int(r * cell), int(cell) + 1, int(cell) + 1)

    def _cell_centre(self, r: int, c: int, cell: float):
        return int(c * cell + cell / 2), int(r * cell + cell / 2)

    def draw(self, surf):
        surf.fill((250, 250, 250))
        cell = GRID_PX / self.n

        if not self.result:
            txt = FONT.render("Press R to run A*", True, (0, 0, 0))
            surf.blit(txt, (10, GRID_PX // 2))
            return

        # terrain shading
        heights = self.result.get('heights')
        blocked = self.result.get('blocked')
        if heights:
            top = max(max(row) for row in heights) or 1.0
            for r, row in enumerate(heights):
                for c, h in enumerate(row):
                    if blocked and blocked[r][c]:
                        colour = (60, 60, 60)
                    else:
                        shade = int(230 - 130 * h / top)
                        colour = (shade, min(255, shade + 20), shade)
                    pygame.draw.rect(surf, colour, self._cell_rect(r, c, cell))

        # settled cells up to the current frame
        settled: List[List[int]] = self.result['settled']
        overlay = pygame.Surface((int(cell) + 1, int(cell) + 1), pygame.SRCALPHA)
        overlay.fill((80, 120, 255, 110))
        for r, c in settled[:self.frame_idx + 1]:
            surf.blit(overlay, self._cell_rect(r, c, cell))

        # path once the animation is over
        path = self.result.get('path')
        if path and self.frame_idx + 1 >= self.n_frames and len(path) > 1:
            pts = [self._cell_centre(r, c, cell) for r, c in path]
            pygame.draw.lines(surf, (255, 0, 0), False, pts, 3)

        # start / goal
        pygame.draw.circle(surf, (0, 200, 0), self._cell_centre(*self.start, cell), 6)
        pygame.draw.circle(surf, (0, 0, 200), self._cell_centre(*self.goal, cell), 6)

        cost = self.result['cost']
        cost_txt = "no path" if cost is None else f"cost {cost:.2f}"
        txt = FONT.render(
            f"Settled {self.frame_idx + 1}/{self.n_frames} | {cost_txt} | weight {self.heuristic_weight:g}"
            f" | speed {self.play_speed:.2f}s",
            True, (0, 0, 0))
        surf.blit(txt, (10, GRID_PX + 10))


# --------------------------------------------------------
# GLOBAL STATE
# --------------------------------------------------------

astar_vis = AStarVisualizer()


# ----------------------------- SOCKET EVENTS --------------------------
@sio.event
def connect():
    print("Connected to backend")


@sio.on('astar_done')
def on_astar_done(data):
    astar_vis.handle_result(data)


@sio.event
def disconnect():
    print("Disconnected from backend")


# ----------------------------- MAIN LOOP ------------------------------

def main():
    try:
        sio.connect(BACKEND_URL)
    except Exception as e:
        print("Failed to connect to backend:", e)
        sys.exit(1)

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_SPACE:
                    astar_vis.playing = not astar_vis.playing
                elif event.key == pygame.K_RIGHT:
                    astar_vis.frame_idx = min(astar_vis.frame_idx + 1, max(0, astar_vis.n_frames - 1))
                elif event.key == pygame.K_LEFT:
                    astar_vis.frame_idx = max(astar_vis.frame_idx - 1, 0)
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS):
                    astar_vis.play_speed = max(0.0, astar_vis.play_speed - 0.01)
                elif event.key == pygame.K_MINUS:
                    astar_vis.play_speed = astar_vis.play_speed + 0.01
                elif event.key == pygame.K_w:
                    astar_vis.weight_idx = (astar_vis.weight_idx + 1) % len(WEIGHTS)
                elif event.key == pygame.K_r:
                    astar_vis.request_run()

        astar_vis.update()
        astar_vis.draw(screen)

        help_txt = FONT.render(HELP_TEXT, True, (0, 0, 0))
        screen.blit(help_txt, (10, GRID_PX + 35))

        pygame.display.flip()
        clock.tick(FPS)

    sio.disconnect()
    pygame.quit()
    sys.exit()


if __name__ == '__main__':
    main()
