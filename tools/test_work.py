from __future__ import annotations

import tempfile
from pathlib import Path

from winesim import activities, oxidation, staff, vineyard
from winesim.constants import STAFF_SKILLS
from winesim.models import GameState, Staff, Vineyard, WineBatch
from winesim.storage import load_state, save_state


def _assert(cond: bool, msg: str) -> None:
    if not cond:
        raise AssertionError(msg)


class _FixedRng:
    """Stands in for random.Random where only random() is drawn."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


def _make_min_state() -> GameState:
    s = GameState()
    s.money = 1_000_000.0
    return s


def _add_vineyard(s: GameState, vineyard_id: str = "V1", planted: bool = True) -> Vineyard:
    v = Vineyard(
        vineyard_id=vineyard_id,
        name=f"Test Vineyard {vineyard_id}",
        country="France",
        region="Bordeaux",
        hectares=2.0,
        altitude=50,
        aspect="South",
        soil=["Clay", "Gravel"],
        land_value=200_000.0,
    )
    if planted:
        v.grape = "Chardonnay"
        v.vine_age = 10
        v.density = 5_000
        v.status = "Growing"
        v.ripeness = 0.8
        v.vineyard_health = 0.8
        v.vine_yield = 0.5
    s.vineyards[v.vineyard_id] = v
    return v


def _add_staff(s: GameState, staff_id: str = "S1", skill: float = 1.0, workforce: int = 10_000, specialist: bool = True) -> Staff:
    member = Staff(
        staff_id=staff_id,
        name=f"Worker {staff_id}",
        nationality="France",
        skill_level=skill,
        skills={k: skill for k in STAFF_SKILLS},
        specializations=["field", "winery"] if specialist else [],
        workforce=workforce,
    )
    s.staff[staff_id] = member
    return member


def test_total_work_formula() -> None:
    base = activities.calculate_total_work(2.0, 0.28, 10, density=5_000, density_based=True)
    _assert(base == 368, f"10 + 2 ha / 0.28 * 50 rounds up to 368, got {base}")
    dense = activities.calculate_total_work(2.0, 0.28, 10, density=10_000, density_based=True)
    _assert(dense == 725, f"double density halves the rate, got {dense}")
    flat = activities.calculate_total_work(2.0, 0.28, 10, density=10_000, density_based=False)
    _assert(flat == base, "density is ignored unless the task is density based")
    harder = activities.calculate_total_work(2.0, 0.28, 10, density=5_000, density_based=True, modifiers=(0.5,))
    _assert(harder == 551, f"a 50% modifier scales the whole job, got {harder}")


def test_work_modifiers() -> None:
    s = _make_min_state()
    v = _add_vineyard(s, planted=False)
    spring = activities.planting_work(v, "Pinot Noir", 5_000, "Spring")
    fall = activities.planting_work(v, "Pinot Noir", 5_000, "Fall")
    sturdy = activities.planting_work(v, "Primitivo", 5_000, "Spring")
    _assert(fall > spring, "planting in fall is harder than in spring")
    _assert(sturdy < spring, "fragile grapes take more work to plant")
    _assert(abs(activities.soil_modifier(["Clay", "Gravel"]) - 0.04) < 1e-12, "soil difficulty is averaged")
    _assert(activities.altitude_modifier(v) == 0.5, "altitude is rated within the regional range")

    light = activities.clearing_work(v, uproot=False, season="Summer")
    planted = _add_vineyard(s, "V2")
    _assert(activities.clearing_work(planted, uproot=True, season="Summer") > light, "uprooting adds work to clearing")


def test_staff_contribution_and_team_scaling() -> None:
    s = _make_min_state()
    plain = _add_staff(s, "S1", skill=0.6, workforce=50, specialist=False)
    expert = _add_staff(s, "S2", skill=0.6, workforce=50, specialist=True)

    _assert(abs(activities.staff_contribution(plain, "planting") - 30.0) < 1e-9, "workforce x field skill")
    _assert(abs(activities.staff_contribution(expert, "planting") - 36.0) < 1e-9, "specialists work 20% faster")
    _assert(abs(activities.staff_contribution(plain, "crushing", 2) - 15.0) < 1e-9, "two tasks split the effort")

    solo = activities.team_work([plain], "planting", {})
    pair = activities.team_work([plain, _add_staff(s, "S3", skill=0.6, workforce=50, specialist=False)], "planting", {})
    _assert(abs(solo - 30.0) < 1e-9, "a team of one contributes its own work")
    _assert(solo < pair < 2 * solo, f"larger teams have diminishing returns ({solo} -> {pair})")
    _assert(activities.team_work([], "planting", {}) == 0.0, "nobody assigned, no work")


def test_planting_activity_completes() -> None:
    s = _make_min_state()
    v = _add_vineyard(s, planted=False)
    _add_staff(s)
    _add_staff(s, "S2", specialist=False)

    money_before = s.money
    a = activities.start_planting(s, "V1", "Pinot Noir", 4_000)
    _assert(abs(money_before - s.money - 2.0 * 4_000 * 1.5) < 1e-6, "planting is paid when the work starts")
    _assert(v.grape is None, "vines are not in the ground until the work is done")
    _assert(a.assigned_staff_ids == ["S1"], "field specialists are assigned by default")
    _assert(a.total_work == activities.planting_work(v, "Pinot Noir", 4_000, s.season), "work reflects the job")

    try:
        activities.start_planting(s, "V1", "Barbera")
    except ValueError:
        pass
    else:
        raise AssertionError("one activity per vineyard at a time")

    done = activities.progress_activities(s)
    _assert(len(done) == 1 and done[0][0].activity_id == a.activity_id, "a strong crew finishes in one week")
    _assert(v.grape == "Pinot Noir" and v.density == 4_000 and v.status == "Growing", "planting applies on completion")
    _assert(not s.activities, "completed activities are removed")


def test_progress_is_split_across_tasks() -> None:
    s = _make_min_state()
    _add_vineyard(s, "V1", planted=False)
    _add_vineyard(s, "V2", planted=False)
    _add_staff(s, "S1", skill=0.5, workforce=50, specialist=False)

    a = activities.start_planting(s, "V1", "Barbera", staff_ids=["S1"])
    b = activities.start_planting(s, "V2", "Barbera", staff_ids=["S1"])

    activities.progress_activities(s)
    _assert(abs(a.completed_work - 12.5) < 1e-9 and abs(b.completed_work - 12.5) < 1e-9, "25 units a week shared by two tasks")
    expected = -(-(a.total_work - 12.5) // 12.5)
    _assert(activities.estimated_weeks(s, a) == int(expected), "estimate uses the current weekly rate")

    activities.assign_staff(s, b.activity_id, [])
    _assert(activities.estimated_weeks(s, b) is None, "an unstaffed activity has no estimate")
    activities.progress_activities(s)
    _assert(abs(b.completed_work - 12.5) < 1e-9, "unstaffed activities do not progress")
    _assert(abs(a.completed_work - 37.5) < 1e-9, "a single task gets the full effort")

    try:
        activities.assign_staff(s, a.activity_id, ["nobody"])
    except ValueError:
        pass
    else:
        raise AssertionError("assigning unknown staff should fail")


def test_harvest_activity_creates_batch() -> None:
    s = _make_min_state()
    v = _add_vineyard(s)
    _add_staff(s)
    expected = vineyard.calculate_vineyard_yield(v)

    a = activities.start_harvest(s, "V1")
    _assert(a.category == "harvesting" and not s.batches, "no grapes are picked before the work is done")
    _assert(a.total_work == activities.harvest_work(v), "harvest work follows the expected crop")

    try:
        vineyard.sell_vineyard(s, "V1")
    except ValueError:
        pass
    else:
        raise AssertionError("a vineyard with work in progress cannot be sold")

    done = activities.progress_activities(s)
    batch = done[0][1]
    _assert(isinstance(batch, WineBatch) and batch.quantity == expected, "completion creates the grape batch")
    _assert(v.status == "Harvested", "vineyard is marked harvested")


def test_failed_completion_is_reported() -> None:
    s = _make_min_state()
    v = _add_vineyard(s)
    _add_staff(s)
    activities.start_harvest(s, "V1")
    v.status = "Dormant"

    done = activities.progress_activities(s)
    _assert(done == [] and not s.activities and not s.batches, "the activity is dropped without a batch")
    _assert(any("could not be completed" in m.text for m in s.notifications), "the player is told why")


def test_crushing_activity() -> None:
    s = _make_min_state()
    _add_vineyard(s)
    _add_staff(s)
    batch = vineyard.harvest_vineyard(s, "V1")

    hand = activities.crushing_work(batch, "Hand Press", destem=True, cold_soak=True)
    machine = activities.crushing_work(batch, "Mechanical Press", destem=False, cold_soak=False)
    _assert(hand > machine, "hand pressing with destemming and cold soak is more work")

    activities.start_crushing(s, batch.batch_id, "Hand Press", destem=True, cold_soak=False)
    _assert(batch.state == "grapes", "grapes stay uncrushed until the work is done")
    activities.progress_activities(s)
    _assert(batch.state == "must_ready" and batch.crushing_method == "Hand Press", "crushing applies on completion")


def test_fire_and_cancel() -> None:
    s = _make_min_state()
    _add_vineyard(s, planted=False)
    _add_staff(s)
    a = activities.start_clearing(s, "V1")
    _assert(a.category == "clearing", "bare land is cleared, not uprooted")

    staff.fire_staff(s, "S1")
    _assert(a.assigned_staff_ids == [], "fired staff leave their activities")

    money = s.money
    activities.cancel_activity(s, a.activity_id)
    _assert(not s.activities and s.money == money, "cancelling drops the activity without a refund")
    try:
        activities.cancel_activity(s, a.activity_id)
    except ValueError:
        pass
    else:
        raise AssertionError("cancelling twice should fail")


def test_activities_persist() -> None:
    s = _make_min_state()
    _add_vineyard(s, planted=False)
    _add_staff(s, workforce=1)
    a = activities.start_planting(s, "V1", "Barbera")
    activities.progress_activities(s)
    with tempfile.TemporaryDirectory() as td:
        p = Path(td) / "state.json"
        save_state(s, p)
        s2 = load_state(p)
    a2 = s2.activities[a.activity_id]
    _assert(a2.params == {"grape": "Barbera", "density": 5_000}, "activity parameters survive")
    _assert(a2.completed_work == a.completed_work and a2.assigned_staff_ids == ["S1"], "progress and crew survive")
    _assert(s2.staff["S1"].workforce == 1, "staff workforce survives")


def test_oxidation_risk_grows_and_warns() -> None:
    s = _make_min_state()
    _add_vineyard(s)
    batch = vineyard.harvest_vineyard(s, "V1")
    _assert(batch.prone_to_oxidation == 0.7, "proneness comes from the grape")
    _assert(abs(oxidation.oxidation_risk_increase(batch) - 0.042) < 1e-12, "0.02 x 0.7 x 3.0 for fresh grapes")

    hit = oxidation.process_weekly_oxidation(s, _FixedRng(0.99))
    _assert(hit == [] and abs(batch.oxidation - 0.042) < 1e-12, "risk accumulates while the roll misses")

    batch.oxidation = 0.09
    seen = len(s.notifications)
    oxidation.process_weekly_oxidation(s, _FixedRng(0.99))
    _assert(batch.oxidation > 0.10 and not batch.is_oxidized, "risk crosses the first threshold")
    _assert(any("oxidation risk" in m.text for m in s.notifications[seen:]), "crossing a threshold warns the player")

    batch.state = "bottled"
    batch.oxidation = 0.0
    _assert(oxidation.oxidation_risk_increase(batch) < 0.042 / 5, "bottled wine is far safer than grapes")


def test_oxidation_manifests() -> None:
    s = _make_min_state()
    _add_vineyard(s)
    batch = vineyard.harvest_vineyard(s, "V1")
    quality = batch.quality
    aroma = batch.characteristics["aroma"]
    _assert(oxidation.oxidation_price_factor(batch, "Restaurant") == 1.0, "sound wine sells at full price")

    hit = oxidation.process_weekly_oxidation(s, _FixedRng(0.0))
    _assert(hit == [batch] and batch.is_oxidized, "a roll under the risk oxidizes the batch")
    _assert(batch.quality < quality, "oxidation lowers quality")
    _assert(abs(batch.characteristics["aroma"] - max(0.0, aroma - 0.2)) < 1e-9, "aroma fades")
    _assert(any(e.event_type == "oxidation" and e.amount < 0 for e in s.prestige_events.values()), "the company loses prestige")
    _assert(oxidation.oxidation_price_factor(batch, "Restaurant") == 0.85, "customers pay less for oxidized wine")

    risk = batch.oxidation
    oxidation.process_weekly_oxidation(s, _FixedRng(0.0))
    _assert(batch.oxidation == risk, "an oxidized batch is not rolled again")


def main() -> None:
    tests = [
        test_total_work_formula,
        test_work_modifiers,
        test_staff_contribution_and_team_scaling,
        test_planting_activity_completes,
        test_progress_is_split_across_tasks,
        test_harvest_activity_creates_batch,
        test_failed_completion_is_reported,
        test_crushing_activity,
        test_fire_and_cancel,
        test_activities_persist,
        test_oxidation_risk_grows_and_warns,
        test_oxidation_manifests,
    ]
    for t in tests:
        t()
        print(f"OK  {t.__name__}")
    print(f"ALL OK ({len(tests)} tests)")


if __name__ == "__main__":
    main()
