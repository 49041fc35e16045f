from db.users import create_user, authenticate_user, validate_session, delete_session, user_exists


def test_register_success(test_client):
    """Test successful user registration"""
    response = test_client.post("/api/auth/register", json={
        "username": "newuser",
        "password": "testpass123"
    })
    assert response.status_code == 200
    data = response.json()
    assert "user_id" in data
    assert data["message"] == "User created successfully"
    assert user_exists("newuser")


def test_register_duplicate_username(test_client, test_user):
    """Test that duplicate username returns error"""
    response = test_client.post("/api/auth/register", json={
        "username": "testuser",
        "password": "differentpass"
    })
    assert response.status_code == 400
    assert "already exists" in response.json()["detail"].lower()


def test_register_validates_lengths(test_client):
    response = test_client.post("/api/auth/register", json={"username": "ab", "password": "testpass123"})
    assert response.status_code == 422

    response = test_client.post("/api/auth/register", json={"username": "newuser", "password": "123"})
    assert response.status_code == 422


def test_register_ignores_role_field(test_client):
    """Test that users cannot self-promote to admin during registration"""
    response = test_client.post("/api/auth/register", json={
        "username": "hacker",
        "password": "hackpass123",
        "role": "admin"
    })
    assert response.status_code == 200

    login_response = test_client.post("/api/auth/login", json={
        "username": "hacker",
        "password": "hackpass123"
    })
    assert login_response.status_code == 200
    assert login_response.json()["user"]["role"] == "user"


def test_login_success_returns_cookie(test_client, test_user):
    """Test that successful login sets session cookie"""
    response = test_client.post("/api/auth/login", json={
        "username": "testuser",
        "password": "password123"
    })
    assert response.status_code == 200

    data = response.json()
    assert data["message"] == "Login successful"
    assert data["user"]["username"] == "testuser"
    assert data["user"]["role"] == "user"

    assert "session_token" in response.cookies
    assert response.cookies["session_token"] != ""


def test_login_wrong_password(test_client, test_user):
    """Test that wrong password is rejected"""
    response = test_client.post("/api/auth/login", json={
        "username": "testuser",
        "password": "wrongpassword"
    })
    assert response.status_code == 401
    assert "invalid" in response.json()["detail"].lower()


def test_bcrypt_hash_verified(test_db):
    """Test that passwords are stored as bcrypt hashes and never returned"""
    user_id = create_user("bcryptuser", "securepass123", "bcrypt@test.com")
    assert user_id is not None

    row = test_db.execute('SELECT password_hash FROM users WHERE id = ?', (user_id,)).fetchone()
    assert row["password_hash"].startswith("$2b$")

    user = authenticate_user("bcryptuser", "securepass123")
    assert user is not None
    assert user["username"] == "bcryptuser"
    assert "password_hash" not in user

    assert authenticate_user("bcryptuser", "wrongpass") is None
    assert authenticate_user("nobody", "securepass123") is None


def test_session_token_created(test_client, test_db):
    """Test that session token is created and stored on login"""
    user_id = create_user("sessionuser", "sessionpass", "session@test.com")

    response = test_client.post("/api/auth/login", json={
        "username": "sessionuser",
        "password": "sessionpass"
    })
    assert response.status_code == 200

    session_token = response.cookies.get("session_token")
    assert session_token is not None

    session_row = test_db.execute(
        'SELECT user_id, expires_at FROM sessions WHERE token = ?',
        (session_token,)
    ).fetchone()
    assert session_row is not None
    assert session_row["user_id"] == user_id

    assert validate_session(session_token) == user_id
    delete_session(session_token)
    assert validate_session(session_token) is None


def test_me_returns_current_user(logged_in_client, test_user):
    response = logged_in_client.get("/api/auth/me")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == test_user["id"]
    assert data["username"] == "testuser"
    assert data["email"] == "test@example.com"


def test_me_requires_session(test_client):
    assert test_client.get("/api/auth/me").status_code == 401

    test_client.cookies.set("session_token", "not-a-real-token")
    response = test_client.get("/api/auth/me")
    assert response.status_code == 401
    assert "expired" in response.json()["detail"].lower()


def test_logout_clears_session(test_client, test_user):
    """Test that logout invalidates session"""
    login_response = test_client.post("/api/auth/login", json={
        "username": "testuser",
        "password": "password123"
    })
    session_token = login_response.cookies.get("session_token")
    assert session_token is not None

    assert validate_session(session_token) == test_user["id"]

    logout_response = test_client.post("/api/auth/logout")
    assert logout_response.status_code == 200

    assert validate_session(session_token) is None

    me_response = test_client.get("/api/auth/me")
    assert me_response.status_code == 401
