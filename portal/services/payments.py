from portal.services.backend import BackendClient, ensure_applied, extract_list, unwrap

METHODS = ('Cash', 'Later', 'Partial', 'Exempt')
STATUSES = ('Paid', 'Pending', 'Partial', 'Exempt', 'Refunded')


def list_payments(client: BackendClient, params=None) -> dict:
    payload = client.get('/clinic/payments', params=params)
    page = payload if isinstance(payload, dict) else {}
    return {
        'data': extract_list(payload),
        'pagination': {
            'current_page': page.get('current_page', 1),
            'last_page': page.get('last_page', 1),
            'per_page': page.get('per_page'),
            'total': page.get('total'),
        },
    }


def create_payment(client: BackendClient, data: dict):
    return ensure_applied(client.post('/clinic/payments', json=data))


def update_payment(client: BackendClient, payment_id, data: dict):
    return ensure_applied(client.put(f'/clinic/payments/{payment_id}', json=data))


def pending_payments(client: BackendClient) -> dict:
    payload = unwrap(client.get('/clinic/payments/pending'))
    payload = payload if isinstance(payload, dict) else {'payments': payload}
    payments = extract_list(payload, ('payments', 'data'))
    return {
        'payments': payments,
        'total_pending': payload.get('total_pending', 0) or 0,
        'count': payload.get('count', len(payments)),
    }


def patient_payments(client: BackendClient, patient_id):
    return unwrap(client.get(f'/clinic/patients/{patient_id}/payments'))
