def test_health(http):
    response = http.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "message": "Server is running"}


def test_pages_and_assets(http):
    assert b"NordChat lobby" in http.get("/").data
    assert b"Room 1" in http.get("/room1").data
    assert http.get("/chat.js").status_code == 200


def test_missing_asset_and_traversal(http):
    assert http.get("/nope.css").status_code == 404
    assert http.get("/../secrets.txt").status_code == 404


def test_security_headers(http):
    response = http.get("/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"


def test_cors_allows_configured_origin(http):
    response = http.get("/health", headers={"Origin": "https://nord-chat.netlify.app"})
    assert response.headers.get("Access-Control-Allow-Origin") == "https://nord-chat.netlify.app"

    response = http.get("/health", headers={"Origin": "https://evil.example"})
    assert "Access-Control-Allow-Origin" not in response.headers


def test_proxy_hops_installs_proxy_fix(settings):
    from werkzeug.middleware.proxy_fix import ProxyFix

    from server_init import create_app

    app, _socketio = create_app(settings)
    assert not isinstance(app.wsgi_app, ProxyFix)

    settings["proxy_hops"] = 1
    app, _socketio = create_app(settings)
    assert isinstance(app.wsgi_app, ProxyFix)
    assert app.wsgi_app.x_for == 1
