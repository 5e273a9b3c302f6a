"""Tests for Flask API endpoints."""

import copy


class TestHealth:

    def test_health(self, client):
        response = client.get('/api/health')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'ok'


class TestReflowEndpoint:

    def test_reflow_respects_dependencies(self, client, scenario_payload):
        response = client.post('/api/reflow', json=scenario_payload)
        assert response.status_code == 200
        data = response.get_json()

        results = data['results']
        assert [r['workOrderDocId'] for r in results] == ['wo1', 'wo2']
        assert results[0]['endDate'] == '2025-12-01T10:00:00Z'
        assert results[1]['startDate'] >= results[0]['endDate']
        assert results[1]['wasDelayed'] is True
        assert results[1]['delayMinutes'] == 60
        assert data['summary']['delayed'] == 1
        assert data['label'] == 'api-test'

    def test_missing_body(self, client):
        response = client.post('/api/reflow', data='not json', content_type='text/plain')
        assert response.status_code == 400

    def test_malformed_document(self, client, scenario_payload):
        payload = copy.deepcopy(scenario_payload)
        del payload['workOrders'][0]['data']['startDate']
        response = client.post('/api/reflow', json=payload)
        assert response.status_code == 400
        assert 'startDate' in response.get_json()['error']

    def test_validation_failure(self, client, scenario_payload):
        payload = copy.deepcopy(scenario_payload)
        payload['workOrders'][1]['data']['dependsOnWorkOrderIds'] = ['ghost']
        response = client.post('/api/reflow', json=payload)
        assert response.status_code == 400
        assert response.get_json()['validation']['valid'] is False

    def test_per_order_failure_is_reported_not_fatal(self, client, scenario_payload):
        payload = copy.deepcopy(scenario_payload)
        payload['workOrders'][0]['data']['workCenterId'] = 'wc-ghost'
        response = client.post('/api/reflow', json=payload)
        assert response.status_code == 200
        data = response.get_json()
        assert data['results'][0]['delayReason'].startswith('Scheduling failed')
        assert data['summary']['failed'] == 1
        assert data['warnings']


class TestExportEndpoint:

    def test_export_returns_workbook(self, client, scenario_payload):
        response = client.post('/api/reflow/export', json=scenario_payload)
        assert response.status_code == 200
        assert 'attachment' in response.headers['Content-Disposition']
        assert response.data[:2] == b'PK'  # xlsx is a zip container


class TestScenarioEndpoints:

    def test_list_includes_demo(self, client):
        response = client.get('/api/scenarios')
        assert response.status_code == 200
        assert 'demo' in response.get_json()['scenarios']

    def test_run_demo(self, client):
        response = client.get('/api/scenarios/demo/reflow')
        assert response.status_code == 200
        data = response.get_json()
        assert data['summary']['total_delay_minutes'] == 2340
        assert data['late_vs_due_date'][0]['workOrderNumber'] == 'WO-002'

    def test_unknown_scenario(self, client):
        response = client.get('/api/scenarios/nope.json/reflow')
        assert response.status_code == 404
