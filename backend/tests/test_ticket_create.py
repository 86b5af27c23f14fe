import io
from tests.test_lifecycle_helpers import creator_headers, assert_error


def _form(**over):
    form = {
        'fullName': 'Pat Creator', 'contactNumber': '555-0100', 'department': 'Finance', 'company': 'Acme',
        'category': 'c1', 'assignedTo': '20', 'issueType': 'i1', 'severityLevel': 'High',
        'description': 'VPN drops every hour',
    }
    form.update(over)
    return form


def test_create_ticket_json(app_context, client, fake):
    resp = client.post('/tickets', json=_form(), headers=creator_headers())
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body['status'] == 'New'
    assert body['category'] == {'id': 'c1', 'name': 'Network'}
    assert body['requiresApproval'] is False
    create = next(b for m, p, b in fake.calls if (m, p) == ('POST', '/tickets'))
    assert create['issueType'] == 'i1'
    assert 'requestType' not in create


def test_invalid_form_never_reaches_backend(app_context, client, fake):
    resp = client.post('/tickets', json=_form(issueType='', fullName=''), headers=creator_headers())
    err = assert_error(resp, 400, 'validation')
    assert err['fields']['issueType'] == 'Select either an issue type or a request type'
    assert err['fields']['fullName'] == 'Full name is required'
    assert fake.calls == []


def test_both_types_rejected_locally(app_context, client, fake):
    resp = client.post('/tickets', json=_form(requestType='r1'), headers=creator_headers())
    err = assert_error(resp, 400, 'validation')
    assert err['fields']['requestType'] == 'Choose an issue type or a request type, not both'
    assert fake.calls == []


def test_selection_outside_category_rejected_before_create(app_context, client, fake):
    resp = client.post('/tickets', json=_form(issueType='i3'), headers=creator_headers())
    err = assert_error(resp, 400, 'validation')
    assert 'issueType' in err['fields']
    assert ('POST', '/tickets') not in [(m, p) for m, p, _ in fake.calls]


def test_request_type_needing_approval_flags_ticket(app_context, client, fake):
    form = _form(category='c2', assignedTo='21', issueType='', requestType='r2')
    resp = client.post('/tickets', json=form, headers=creator_headers())
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body['requiresApproval'] is True
    assert body['actions'] == ['submit']


def test_create_with_attachments(app_context, client, fake):
    data = dict(_form())
    data['attachments'] = [(io.BytesIO(b'line one'), 'vpn.log'), (io.BytesIO(b'%PDF'), 'report.pdf')]
    resp = client.post('/tickets', data=data, headers=creator_headers(), content_type='multipart/form-data')
    assert resp.status_code == 201, resp.get_json()
    attachments = resp.get_json()['attachments']
    assert [a['originalName'] for a in attachments] == ['vpn.log', 'report.pdf']
    assert attachments[1]['viewableInline'] is True
    assert attachments[1]['kind'] == 'pdf'
    assert attachments[0]['downloadUrl'].endswith(f"/tickets/attachments/{attachments[0]['id']}/download")


def test_download_attachment_proxy(app_context, client, fake):
    fake.add_ticket('1')
    fake.add_attachment('1', 'a1', 'screen.png', b'\x89PNG', 'image/png')
    resp = client.get('/tickets/attachments/a1/download', headers=creator_headers())
    assert resp.status_code == 200
    assert resp.data == b'\x89PNG'
    assert resp.mimetype == 'image/png'
    assert resp.headers['Content-Disposition'] == 'attachment; filename="screen.png"'
    assert_error(client.get('/tickets/attachments/zz/download', headers=creator_headers()), 404, 'not_found')
