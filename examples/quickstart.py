"""debristrack Quickstart — propagate a small catalog and look for close approaches."""

from debristrack import DetectionAlgorithm, SortKey, parse_catalog, propagate, to_calendar

tle_text = """
ISS (ZARYA)
1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9993
2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439596
CSS (TIANHE)
1 48274U 21035A   24045.50261574  .00021540  00000-0  25163-3 0  9993
2 48274  41.4681 279.1498 0005372 149.8847 345.3740 15.62096269157018
COSMOS 1408 DEB
1 51087U 82092HY  24045.40000000  .00013000  00000-0  73000-3 0  9999
2 51087  82.5600 120.3400 0050000 200.0000 160.0000 15.15000000 50000
""".strip()

catalog = parse_catalog(tle_text)
epoch = max(r.epoch for r in catalog)

positions, states = propagate(epoch, catalog)
print(f"Epoch:    {to_calendar(epoch)}")
print(f"Rendered: {len(positions)} active objects")
print(f"Screened: {len(states)} objects")

# Tolerance is in Earth radii (0.2 ≈ 1276 km)
report = DetectionAlgorithm.OCTREE.detect(states, tolerance=0.2).sorted(SortKey.DISTANCE)
for r in report:
    print(f"{r.subject_id:>6} -> {r.other_id:>6}  {r.distance:.5f} Re")
