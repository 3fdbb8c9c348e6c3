"""
Central configuration file for the dining philosophers benchmark.
Tune these parameters to change the ring sizes, the timing of the
measurement and how busy each philosopher is.
"""

# --- Benchmark Setup ---
NS = (6,)               # Ring sizes to benchmark, each run with every strategy
REPEATS = 1             # Runs per (strategy, N); per-philosopher averages are averaged

# --- Measurement Window (in seconds) ---
WARMUP = 2.0            # Acquisitions before this point are not counted
MEASURE = 10.0          # Length of the counted period; workers are cancelled at its end

# --- Philosopher Behavior (in seconds) ---
THINK_RANGE = (0.020, 0.080)
EAT_RANGE = (0.015, 0.060)

# --- Polling (in seconds) ---
BUSY_WAIT_POLL = 0.001  # Sleep between attempts of the AtomicBoth strategy
TIMER_POLL = 0.010      # How often the window timer checks the clock

# --- Output ---
SHOW_SIMULATION = False # Narrate every state change on the console
SNAPSHOT_INTERVAL = 0   # Seconds between wait-for snapshots, 0 disables the monitor
JOIN_TIMEOUT = 5.0      # Grace period for each philosopher to stop after cancellation
RESULTS_FILE = "results.tsv"
PLOT_FILE = None        # e.g. "results.png"; None skips the plot
