from time import sleep, perf_counter

from lazy import count_down, indexed, lazy_filter, lazy_transform
from memo import memoize


def expensive_transform(x):
    # Simulate a costly step so laziness is visible
    print(f"  computing f({x}) ...")
    sleep(0.2)
    return x * x


print("\n--- Demo: count_down ---")
for i, v in count_down("zzz", 5):
    print(" ", i, v)

print("\n--- Demo: laziness (no work until pulled) ---")
pipeline = lazy_filter(
    lambda v: v % 2 == 0,
    lazy_transform(expensive_transform, indexed(range(1, 10_000)))
)
print("Constructed pipeline. No output yet (nothing computed).")

t0 = perf_counter()
out = pipeline.take(3)  # pulls only as far as the third even square
t1 = perf_counter()
print(f"Result: {out}")
print(f"Time: {t1 - t0:.2f}s\n")

print("--- Demo: raw step functions compose too ---")
src = count_down(7, 4)
odd_cursor = lazy_filter(lambda v: v % 2 == 1, src.step, src.state, src.cursor)
print(f"Values: {list(odd_cursor.values())}\n")

print("--- Demo: memoization (first call computes; second call reuses) ---")


@memoize
def slow_square(x):
    return expensive_transform(x or 0)


t0 = perf_counter()
slow_square(12)
t1 = perf_counter()
print(f"First call time: {t1 - t0:.2f}s")

t0 = perf_counter()
slow_square(12)
t1 = perf_counter()
print(f"Second call time: {t1 - t0:.4f}s")
print(f"Stats: {slow_square.stats()}")
