from portal.services.backend import BackendClient, unwrap

HISTORY_KEYS = ('medical_history', 'history', 'medicalHistory')


def map_visit(record: dict) -> dict:
    created = str(record.get('created_at') or '')
    return {
        'date': record.get('visit_date') or record.get('date') or created.split('T')[0] or 'N/A',
        'clinic': record.get('clinic_name') or record.get('clinic') or 'Clinic',
        'diagnosis': record.get('diagnosis') or record.get('notes') or 'No diagnosis recorded',
        'doctor': record.get('doctor_name') or record.get('doctor') or 'Unknown Doctor',
    }


def history_records(payload) -> list:
    data = unwrap(payload)
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in HISTORY_KEYS:
            if isinstance(data.get(key), list):
                return data[key]
    return []


def patient_history(client: BackendClient, patient_id) -> list[dict]:
    payload = client.get(f'/clinic/patients/{patient_id}/history')
    return [map_visit(r) for r in history_records(payload) if isinstance(r, dict)]


def my_history(client: BackendClient) -> list[dict]:
    payload = client.get('/patient/medical-history')
    return [map_visit(r) for r in history_records(payload) if isinstance(r, dict)]
