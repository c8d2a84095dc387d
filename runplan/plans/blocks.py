"""Session block construction and scaling."""

from runplan.core.numeric import clamp, rescale_to_total
from runplan.plans.classify import has_structured_main_set
from runplan.plans.types import Block

BLOCK_MIN_MIN = 2
BLOCK_MAX_MIN = 240
RECOVERY_JOG_MIN = 2

WARMUP_PACE = "Easy pace"
WARMUP_HR = "<= 75% HRmax"
COOLDOWN_PACE = "Relaxed easy pace"
COOLDOWN_HR = "<= 72% HRmax"


def _interval_split(total: int) -> tuple[int, int, int, int, int]:
    warmup = int(clamp(round(total * 0.24), 10, 22))
    cooldown = int(clamp(round(total * 0.16), 8, 16))
    available = max(total - warmup - cooldown, 12)
    repeat = 4 if available >= 24 else 3 if available >= 18 else 2
    rep_duration = int(clamp(round((available - (repeat - 1) * RECOVERY_JOG_MIN) / repeat), 2, 8))
    main = repeat * rep_duration + (repeat - 1) * RECOVERY_JOG_MIN
    cooldown = max(6, total - warmup - main)
    return warmup, main, cooldown, repeat, rep_duration


def build_fallback_blocks(
    *,
    title: str,
    objective: str,
    zone: str,
    notes: str,
    duration_min: float,
    pace_target: str,
    hr_target: str,
) -> list[Block]:
    """Build a warm-up / main / cool-down structure for a session.

    Sessions whose text describes a structured main set (intervals, threshold,
    hills...) get repetitions of 2-8 minutes separated by 2-minute jogs;
    anything else gets one continuous main block. The result always sums to
    the session duration.
    """
    total = int(clamp(round(duration_min), 20, 300))

    if has_structured_main_set(f"{title} {zone} {objective} {notes}"):
        warmup, main, cooldown, repeat, rep_duration = _interval_split(total)
        blocks = [
            Block(
                step="Warm-up",
                duration_min=warmup,
                pace_target=WARMUP_PACE,
                hr_target=WARMUP_HR,
                notes="Progressive start plus dynamic mobility.",
            ),
            Block(
                step="Interval block",
                duration_min=main,
                pace_target=pace_target,
                hr_target=hr_target,
                repeat=repeat,
                notes=f"{repeat} x {rep_duration} min effort / {RECOVERY_JOG_MIN} min jog recovery.",
            ),
            Block(
                step="Cool-down",
                duration_min=cooldown,
                pace_target=COOLDOWN_PACE,
                hr_target=COOLDOWN_HR,
                notes="Gradual return and relaxed form.",
            ),
        ]
    else:
        warmup = int(clamp(round(total * 0.2), 8, 18))
        main = int(clamp(round(total * 0.62), 12, 220))
        cooldown = max(5, total - warmup - main)
        blocks = [
            Block(
                step="Warm-up",
                duration_min=warmup,
                pace_target=WARMUP_PACE,
                hr_target=WARMUP_HR,
                notes="Progressive start.",
            ),
            Block(
                step="Main block",
                duration_min=main,
                pace_target=pace_target,
                hr_target=hr_target,
                notes=objective if len(objective) >= 4 else "Session-specific work.",
            ),
            Block(
                step="Cool-down",
                duration_min=cooldown,
                pace_target=COOLDOWN_PACE,
                hr_target=COOLDOWN_HR,
                notes="Relax without raising the intensity.",
            ),
        ]
    return scale_blocks_to_duration(blocks, total)


def scale_blocks_to_duration(
    blocks: list[Block],
    target_min: float,
    max_block_min: int = BLOCK_MAX_MIN,
) -> list[Block]:
    """Rescale block durations so that they sum to the session duration.

    Args:
        blocks: Blocks to rescale (returned unchanged when empty)
        target_min: Session duration in minutes
        max_block_min: Upper bound of every block (race sessions allow longer)

    Returns:
        New blocks whose durations sum to round(target_min)
    """
    if not blocks:
        return []
    bounds = [(float(BLOCK_MIN_MIN), float(max_block_min)) for _ in blocks]
    durations = rescale_to_total(
        [float(block.duration_min) for block in blocks],
        float(round(target_min)),
        bounds,
        digits=0,
    )
    return [
        block.model_copy(update={"duration_min": int(duration)})
        for block, duration in zip(blocks, durations, strict=True)
    ]
