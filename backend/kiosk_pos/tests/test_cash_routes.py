from decimal import Decimal

from conftest import auth_headers, make_kiosk, make_product, make_user


def open_session(client, headers, initial_cash="1000"):
    r = client.post('/cash/sessions/open', json={'initial_cash': initial_cash}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_current_session_is_null_before_opening(client, cashier_headers):
    r = client.get('/cash/sessions/current', headers=cashier_headers)
    assert r.status_code == 200
    assert r.json() is None


def test_open_then_second_open_conflicts(client, cashier_headers):
    opened = open_session(client, cashier_headers)
    assert opened['status'] == 'open'
    assert Decimal(opened['initial_cash']) == Decimal('1000')

    r = client.post('/cash/sessions/open', json={'initial_cash': '50'}, headers=cashier_headers)
    assert r.status_code == 409
    assert r.json()['code'] == 'conflict'

    r = client.get('/cash/sessions/current', headers=cashier_headers)
    assert r.json()['id'] == opened['id']


def test_open_with_negative_cash(client, cashier_headers):
    r = client.post('/cash/sessions/open', json={'initial_cash': '-10'}, headers=cashier_headers)
    assert r.status_code == 400
    assert r.json()['code'] == 'validation_error'


def test_requires_authentication_and_kiosk(client, kiosk, cashier_headers):
    r = client.get('/cash/sessions/current', headers={'X-Kiosk-ID': kiosk.slug})
    assert r.status_code == 401
    r = client.get('/cash/sessions/current', headers={'Authorization': cashier_headers['Authorization']})
    assert r.status_code == 400


def test_movement_with_linked_expense(client, cashier_headers):
    session = open_session(client, cashier_headers)
    r = client.post(f"/cash/sessions/{session['id']}/movements", json={
        'type': 'out',
        'amount': '300',
        'reason': 'Pago de luz',
        'link_as_expense': True,
        'expense_category': 'service',
    }, headers=cashier_headers)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body['status'] == 'ok'
    assert body['expense_id'] is not None
    assert body['movement']['linked_expense_id'] == body['expense_id']

    expenses = client.get('/expenses/', headers=cashier_headers).json()
    assert [e['id'] for e in expenses] == [body['expense_id']]

    movements = client.get(f"/cash/sessions/{session['id']}/movements", headers=cashier_headers).json()
    assert len(movements) == 1


def test_cash_expense_leaves_the_till(client, cashier_headers):
    session = open_session(client, cashier_headers, '1000')
    r = client.post('/expenses/', json={
        'amount': '150', 'description': 'Artículos de limpieza', 'category': 'other',
    }, headers=cashier_headers)
    assert r.status_code == 201, r.text
    expense = r.json()
    assert expense['payment_method'] == 'cash'

    movements = client.get(f"/cash/sessions/{session['id']}/movements", headers=cashier_headers).json()
    assert [(m['type'], m['linked_expense_id']) for m in movements] == [('out', expense['id'])]

    body = client.get(f"/cash/sessions/{session['id']}/balance", headers=cashier_headers).json()
    assert Decimal(body['manual_out']) == Decimal('150')
    assert Decimal(body['theoretical_balance']) == Decimal('850')

    r = client.post(f"/cash/sessions/{session['id']}/close", json={'final_cash': '850'}, headers=cashier_headers)
    assert Decimal(r.json()['difference']) == Decimal('0')


def test_balance_follows_sales_and_movements(client, db, kiosk, cashier_headers):
    product = make_product(db, kiosk, price='450', stock=10)
    session = open_session(client, cashier_headers, '1000')

    r = client.post('/sales/', json={'items': [{'product_id': product.id, 'quantity': 2}]}, headers=cashier_headers)
    assert r.status_code == 201, r.text
    r = client.post('/sales/', json={
        'items': [{'product_id': product.id, 'quantity': 1}], 'payment_method': 'card',
    }, headers=cashier_headers)
    assert r.status_code == 201
    client.post(f"/cash/sessions/{session['id']}/movements",
                json={'type': 'in', 'amount': '100', 'reason': 'Cambio'}, headers=cashier_headers)
    r = client.post('/supplier-payments/', json={'supplier_name': 'Arcor', 'amount': '250'}, headers=cashier_headers)
    assert r.status_code == 201
    assert r.json()['cash_session_id'] == session['id']

    r = client.get(f"/cash/sessions/{session['id']}/balance", headers=cashier_headers)
    assert r.status_code == 200
    body = r.json()
    assert Decimal(body['cash_sales']) == Decimal('900')
    assert Decimal(body['manual_in']) == Decimal('100')
    assert Decimal(body['supplier_payments']) == Decimal('250')
    assert Decimal(body['theoretical_balance']) == Decimal('1750')
    assert body['refresh_after_seconds'] == 30


def test_close_and_close_again(client, cashier_headers):
    session = open_session(client, cashier_headers, '500')
    r = client.post(f"/cash/sessions/{session['id']}/close", json={'final_cash': '480', 'notes': 'ok'},
                    headers=cashier_headers)
    assert r.status_code == 200, r.text
    closed = r.json()
    assert closed['status'] == 'closed'
    assert Decimal(closed['expected_cash']) == Decimal('500')
    assert Decimal(closed['difference']) == Decimal('-20')
    assert closed['closed_at'] is not None

    r = client.post(f"/cash/sessions/{session['id']}/close", json={'final_cash': '530', 'notes': 'otra'},
                    headers=cashier_headers)
    assert r.status_code == 409
    assert r.json()['code'] == 'invalid_state'

    stored = client.get(f"/cash/sessions/{session['id']}", headers=cashier_headers).json()
    for field in ('final_cash', 'expected_cash', 'difference'):
        assert Decimal(stored[field]) == Decimal(closed[field])
    for field in ('closed_at', 'closed_by', 'notes'):
        assert stored[field] == closed[field]

    r = client.post(f"/cash/sessions/{session['id']}/movements",
                    json={'type': 'in', 'amount': '1', 'reason': 'x'}, headers=cashier_headers)
    assert r.status_code == 409

    history = client.get('/cash/sessions?status=closed', headers=cashier_headers).json()
    assert [s['id'] for s in history] == [session['id']]


def test_session_of_another_kiosk_is_not_found(client, db, cashier_headers):
    session = open_session(client, cashier_headers)
    other = make_kiosk(db, slug='norte')
    other_headers = auth_headers(make_user(db, other, 'owner@norte.com', 'owner'), other)

    r = client.get(f"/cash/sessions/{session['id']}", headers=other_headers)
    assert r.status_code == 404
    assert r.json()['code'] == 'not_found'
    r = client.post(f"/cash/sessions/{session['id']}/close", json={'final_cash': '0'}, headers=other_headers)
    assert r.status_code == 404
