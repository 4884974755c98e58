def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert res.get_json() == {'message': 'Server is up and running'}


def test_health_counts_live_sessions(client, socket_client):
    assert client.get('/health').get_json() == {'status': 'ok', 'sessions': 0}
    host = socket_client()
    host.emit('create', {'name': 'Alice', 'code': 'ABCD', 'rounds': 1, 'categories': ['x']}, callback=True)
    assert client.get('/health').get_json() == {'status': 'ok', 'sessions': 1}
    host.disconnect()
    assert client.get('/health').get_json() == {'status': 'ok', 'sessions': 0}


class OtherConfig:
    TESTING = True


def test_apps_do_not_share_games(flask_app):
    from npat import create_app

    other = create_app(OtherConfig)
    assert other.extensions['npat'].registry is not flask_app.extensions['npat'].registry
