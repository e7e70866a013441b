"""debristrack Batch Screening — run detection off the render thread.

Steps a tracker session through one simulated hour and submits a detection
pass to a worker thread, the way a display loop would.
"""

from concurrent.futures import ThreadPoolExecutor

from debristrack import TrackerSession, detect_async, parse_catalog, propagate

tle_text = """
HST
1 20580U 90037B   24045.55478014  .00001456  00000-0  73052-4 0  9994
2 20580  28.4701  41.0696 0002622 348.3544 140.2428 15.09435694872912
NOAA 18
1 28654U 05018A   24045.52083333  .00000149  00000-0  10834-3 0  9994
2 28654  98.9710 100.7890 0014048 313.6230  46.3750 14.12905012970123
FENGYUN 1C DEB
1 31141U 99025AYM 24045.50000000  .00003200  00000-0  42000-3 0  9999
2 31141  99.0700 200.1200 0030000 150.0000 210.0000 14.80000000 80000
""".strip()

session = TrackerSession.start(parse_catalog(tle_text))
session.toggle_play()
session.clock.faster()
for _ in range(36):
    session.tick(10.0)  # 36 frames of 10 s at 10x = one simulated hour

print(f"Now: {session.display_time()}")

_, states = propagate(session.epoch, session.catalog)
with ThreadPoolExecutor(max_workers=1) as executor:
    future = detect_async(executor, states, tolerance=1.0, iterations=8, algorithm="iterative")
    report = future.result()

for r in report:
    print(f"{r.subject_id:>6} nearest {r.other_id:>6} at {r.distance:.4f} Re")
