from __future__ import annotations

from fastapi.testclient import TestClient

from winesim.storage import reset_data_files, state_path
from winesim.webapp import create_app


def _assert(cond: bool, msg: str) -> None:
    if not cond:
        raise AssertionError(msg)


def _client(seed: int = 20240101) -> TestClient:
    reset_data_files()
    c = TestClient(create_app())
    c.post('/api/reset', json={'company_name': 'Test Winery', 'seed': seed})
    return c


def _buy_cheapest_vineyard(c: TestClient) -> dict:
    for _ in range(5):
        s = c.get('/api/state').json()
        money = float(s['summary']['money'])
        offer = min(s['land_offers'], key=lambda o: float(o['purchase_price']))
        if float(offer['purchase_price']) <= money:
            s2 = c.post('/api/vineyards/buy', json={'offer_id': offer['vineyard_id']}).json()
            _assert('error' not in s2, f"buying should succeed: {s2.get('error')}")
            return s2['vineyard']
        c.post('/api/vineyards/offers', json={})
    raise AssertionError('no affordable land offer found')


def test_reset_state_shape() -> None:
    c = _client()
    s = c.get('/api/state').json()
    _assert(s['summary']['company'] == 'Test Winery', 'company name comes from reset')
    _assert(s['date'] == {'week': 1, 'season': 'Spring', 'year': 2024, 'absolute_week': 1}, 'game starts week 1 Spring 2024')
    _assert(len(s['land_offers']) == 5, 'five land offers on a new game')
    _assert(len(s['staff_candidates']) > 0, 'staff candidates on a new game')
    _assert(any('Welcome' in n['text'] for n in s['notifications']), 'welcome notification')


def test_advance_and_rollback() -> None:
    c = _client()
    s = c.post('/api/advance', json={'weeks': 3}).json()
    _assert(s['date']['absolute_week'] == 4, 'three weeks advanced')

    ledger = c.get('/download/ledger').text
    _assert('Initial investment' in ledger, 'first week transactions are flushed to the ledger')

    s2 = c.post('/api/rollback', json={'weeks': 2}).json()
    _assert(s2['date']['absolute_week'] == 2, 'rollback restores the snapshot')
    s3 = c.get('/api/state').json()
    _assert(s3['date']['absolute_week'] == 2, 'rolled back state is persisted')
    _assert('Initial investment' in c.get('/download/ledger').text, 'ledger rows before the target week are kept')

    err = c.post('/api/rollback', json={'weeks': 480}).json()
    _assert(err.get('date', {}).get('absolute_week') == 1 or 'error' in err, 'rollback is clamped to week 1')


def test_vineyard_flow() -> None:
    c = _client()
    v = _buy_cheapest_vineyard(c)
    vid = v['vineyard_id']
    s = c.get('/api/state').json()
    _assert(any(x['vineyard_id'] == vid for x in s['vineyards']), 'bought vineyard is owned')

    s = c.post(f'/api/vineyards/{vid}/plant', json={'grape': 'Chardonnay', 'density': 5000}).json()
    _assert('error' not in s, f"planting should start: {s.get('error')}")
    act = s['activity']
    _assert(act['category'] == 'planting' and act['target_id'] == vid, 'planting starts an activity')
    _assert(act['total_work'] > 0 and act['estimated_weeks'] is None, 'nobody works on it yet')
    _assert(any(a['activity_id'] == act['activity_id'] for a in s['activities']), 'activity is listed in the state')

    err = c.post(f'/api/vineyards/{vid}/plant', json={'grape': 'Pinot Noir'}).json()
    _assert('error' in err, 'a second planting on the same vineyard is an error')

    err = c.post('/api/vineyards/missing/harvest').json()
    _assert(err.get('error') == 'vineyard not found', 'unknown vineyard error')

    cid = c.get('/api/state').json()['staff_candidates'][0]['staff_id']
    s = c.post('/api/staff/hire', json={'candidate_id': cid}).json()
    _assert('error' not in s, f"hiring should succeed: {s.get('error')}")
    s = c.post(f"/api/activities/{act['activity_id']}/assign", json={'staff_ids': [cid]}).json()
    _assert(s['activity']['assigned_staff_ids'] == [cid], 'staff assigned to the planting')
    _assert(s['activity']['estimated_weeks'] >= 1, 'a staffed activity has an estimate')

    err = c.post(f"/api/activities/{act['activity_id']}/assign", json={'staff_ids': 'everyone'}).json()
    _assert('error' in err, 'staff_ids must be a list')

    s = c.post('/api/advance', json={'weeks': 1}).json()
    rows = c.get('/api/activities').json()['activities']
    if rows:
        _assert(rows[0]['completed_work'] > 0, 'assigned staff make progress each week')
        s = c.post(f"/api/activities/{act['activity_id']}/cancel").json()
        _assert('error' not in s and not s['activities'], 'activity cancelled')
    else:
        _assert(s['activities_completed'] == 1, 'planting finished within the week')

    detail = c.get(f'/api/vineyards/{vid}').json()
    _assert('expected_yield' in detail, 'vineyard detail')

    s = c.post(f'/api/vineyards/{vid}/sell').json()
    _assert('error' not in s and s['sale_price'] > 0, 'vineyard can be sold')
    _assert(not any(x['vineyard_id'] == vid for x in s['vineyards']), 'sold vineyard is gone')


def test_malformed_state_file_starts_fresh() -> None:
    c = _client()
    c.post('/api/advance', json={'weeks': 2})
    for bad in ('[]', '{"state": {"vineyards": {"V1": "oops"}}}', '{"state": {"staff": ["x"]}}'):
        state_path().write_text(bad, encoding='utf-8')
        r = c.get('/api/state')
        _assert(r.status_code == 200, f'badly shaped state file {bad} should not break the API')
        s = r.json()
        _assert(s['date']['absolute_week'] == 1 and not s['vineyards'], f'a fresh game replaces {bad}')


def test_non_numeric_input_is_an_error() -> None:
    c = _client()
    for path, body, key in (
        ('/api/advance', {'weeks': 'soon'}, 'weeks'),
        ('/api/rollback', {'weeks': [1]}, 'weeks'),
        ('/api/reset', {'seed': 'lucky'}, 'seed'),
        ('/api/vineyards/offers', {'count': 'many'}, 'count'),
        ('/api/staff/candidates', {'skill_level': 'high'}, 'skill_level'),
        ('/api/loans/take', {'lender_id': 'x', 'amount': 'lots', 'duration_seasons': 4}, 'amount'),
    ):
        r = c.post(path, json=body)
        _assert(r.status_code == 200, f'{path} should not fail with a server error')
        _assert(r.json().get('error') == f'{key} must be a number', f'{path} reports the bad {key}')

    lender_id = c.get('/api/lenders').json()['lenders'][0]['lender_id']
    err = c.post('/api/loans/quote', json={'lender_id': lender_id, 'amount': 1000, 'duration_seasons': 'long'}).json()
    _assert(err.get('error') == 'duration_seasons must be a number', 'quote reports the bad duration')
    _assert(c.get('/api/state').json()['date']['absolute_week'] == 1, 'rejected input leaves the game untouched')


def test_balance_calculator() -> None:
    c = _client()
    out = c.post('/api/balance', json={'characteristics': {
        'acidity': 0.5, 'aroma': 0.5, 'body': 0.6, 'spice': 0.5, 'sweetness': 0.5, 'tannins': 0.5,
    }}).json()
    _assert(abs(out['score'] - 1.0) < 1e-9 and out['quality_label'] == 'Excellent', 'perfect balance')

    err = c.post('/api/balance', json={'characteristics': {'acidity': 0.5}}).json()
    _assert('error' in err, 'missing traits are reported')


def test_staff_routes() -> None:
    c = _client()
    s = c.post('/api/staff/candidates', json={'count': 3, 'skill_level': 0.6, 'specializations': ['winery']}).json()
    _assert(len(s['staff_candidates']) == 3, 'three candidates generated')
    cid = s['staff_candidates'][0]['staff_id']

    s = c.post('/api/staff/hire', json={'candidate_id': cid}).json()
    _assert(any(x['staff_id'] == cid for x in s['staff']), 'candidate hired')

    s = c.post(f'/api/staff/{cid}/fire').json()
    _assert(not s['staff'], 'staff member fired')

    err = c.post('/api/staff/hire', json={'candidate_id': 'nobody'}).json()
    _assert('error' in err, 'unknown candidate is an error')


def test_loan_routes() -> None:
    c = _client()
    out = c.get('/api/lenders').json()
    _assert(len(out['lenders']) >= 25, 'lenders generated on a new game')
    available = [l for l in out['lenders'] if l['availability']['available']]
    _assert(available, 'at least one lender is available at the default credit rating')

    lender = available[0]
    amount = lender['min_loan_amount']
    duration = lender['min_duration_seasons']
    q = c.post('/api/loans/quote', json={'lender_id': lender['lender_id'], 'amount': amount, 'duration_seasons': duration}).json()
    _assert(q['seasonal_payment'] > 0 and q['origination_fee'] >= 0, 'quote has payment and fee')

    s = c.post('/api/loans/take', json={'lender_id': lender['lender_id'], 'amount': amount, 'duration_seasons': duration}).json()
    _assert('error' not in s, f"loan should be granted: {s.get('error')}")
    loan_id = s['loan']['loan_id']
    _assert(any(l['loan_id'] == loan_id for l in s['loans']), 'loan is listed')

    s = c.post(f'/api/loans/{loan_id}/repay').json()
    _assert(s['loan']['status'] == 'paid_off', 'loan repaid in full')

    err = c.post('/api/loans/quote', json={'lender_id': 'nope', 'amount': 1, 'duration_seasons': 1}).json()
    _assert(err.get('error') == 'lender not found', 'unknown lender error')


def test_orders_customers_prestige() -> None:
    c = _client()
    cust = c.get('/api/customers').json()['customers']
    _assert(len(cust) == 40, 'eight customers per country')

    err = c.post('/api/orders/missing/fulfill').json()
    _assert(err.get('error') == 'order not found', 'unknown order error')

    p = c.get('/api/prestige').json()
    _assert(p['total'] >= 1.0 and any(e['event_type'] == 'company_value' for e in p['events']), 'company value prestige')


def test_highscores_and_notifications() -> None:
    c = _client()
    c.post('/api/advance', json={'weeks': 1})
    hs = c.get('/api/highscores', params={'score_type': 'company_value', 'limit': 5}).json()
    _assert(len(hs['entries']) >= 1, 'weekly tick submits a company value score')

    rk = c.get('/api/highscores/ranking').json()
    _assert(rk['rankings']['company_value']['position'] >= 1, 'company is ranked')

    err = c.get('/api/highscores', params={'score_type': 'bogus'}).json()
    _assert('error' in err, 'unknown score type error')

    n = c.get('/api/notifications', params={'limit': 5}).json()
    _assert(0 < len(n['notifications']) <= 5, 'notifications are listed newest first with a limit')
    removed = c.delete('/api/notifications').json()['removed']
    _assert(removed > 0, 'notifications cleared')
    _assert(c.get('/api/notifications').json()['notifications'] == [], 'notifications list is empty')


def test_download_state() -> None:
    c = _client()
    r = c.get('/download/state')
    _assert(r.status_code == 200 and '"version"' in r.text, 'state file download')


def main() -> None:
    tests = [
        test_reset_state_shape,
        test_advance_and_rollback,
        test_vineyard_flow,
        test_malformed_state_file_starts_fresh,
        test_non_numeric_input_is_an_error,
        test_balance_calculator,
        test_staff_routes,
        test_loan_routes,
        test_orders_customers_prestige,
        test_highscores_and_notifications,
        test_download_state,
    ]
    for t in tests:
        t()
        print(f'OK  {t.__name__}')
    print(f'ALL OK ({len(tests)} tests)')


if __name__ == '__main__':
    main()
