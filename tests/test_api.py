import unittest

from fastapi.testclient import TestClient

from stockledger.config import Settings
from stockledger.main import create_app
from tests.support import IPHONE, memory_engine


def _settings():
    return Settings(
        _env_file=None,
        JWT_SECRET="test-secret",
        BOOTSTRAP_ADMIN_EMAIL="admin@stocksavvy.com",
        BOOTSTRAP_ADMIN_PASSWORD="admin123",
        CLEANUP_ENABLED=False,
        PBKDF2_ROUNDS=1,
    )


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = memory_engine()
        self.client = TestClient(create_app(_settings(), engine=self.engine))
        self.client.__enter__()
        self.admin = self.login("admin@stocksavvy.com", "admin123")

    def tearDown(self):
        self.client.__exit__(None, None, None)
        self.engine.dispose()

    def login(self, email, password):
        response = self.client.post("/auth/login", json={"email": email, "password": password})
        self.assertEqual(response.status_code, 200, response.text)
        return {"Authorization": "Bearer " + response.json()["access_token"]}

    def worker(self):
        response = self.client.post(
            "/users",
            json={"name": "Worker User", "email": "worker@stocksavvy.com", "password": "worker123"},
            headers=self.admin,
        )
        self.assertEqual(response.status_code, 201, response.text)
        return self.login("worker@stocksavvy.com", "worker123")

    def create_product(self, **overrides):
        payload = dict(IPHONE)
        payload.update(overrides)
        response = self.client.post("/products", json=payload, headers=self.admin)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()


class AuthApiTest(ApiTestCase):
    def test_health_is_public(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_requests_without_token_are_rejected(self):
        self.assertEqual(self.client.get("/products").status_code, 401)
        self.assertEqual(
            self.client.get("/products", headers={"Authorization": "Bearer nonsense"}).status_code,
            401,
        )

    def test_bad_credentials(self):
        response = self.client.post(
            "/auth/login", json={"email": "admin@stocksavvy.com", "password": "wrong"}
        )
        self.assertEqual(response.status_code, 401)

    def test_me_returns_token_user(self):
        response = self.client.get("/auth/me", headers=self.admin)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["role"], "admin")

    def test_root_redirects_to_dashboard(self):
        response = self.client.get("/", follow_redirects=False)
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.headers["location"], "/dashboard/summary")


class ProductApiTest(ApiTestCase):
    def test_add_and_fetch_product_with_history(self):
        created = self.create_product()
        self.assertEqual(created["status"], "In Stock")

        response = self.client.get("/products/{}".format(created["id"]), headers=self.admin)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["product_id"], "iph13")
        self.assertEqual([h["change"] for h in body["history"]], ["Product added with purchase price"])

    def test_invalid_and_duplicate_products(self):
        self.create_product()
        duplicate = self.client.post("/products", json=IPHONE, headers=self.admin)
        self.assertEqual(duplicate.status_code, 409)

        invalid = self.client.post("/products", json=dict(IPHONE, stock=0), headers=self.admin)
        self.assertEqual(invalid.status_code, 422)

    def test_sell_defaults_seller_to_account_name(self):
        product = self.create_product()
        url = "/products/{}/sell".format(product["id"])

        response = self.client.post(url, json={"sale_date": "2024-02-01", "quantity": 2}, headers=self.admin)
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["stock"], 3)
        self.assertEqual(response.json()["seller"], "admin")

        history = self.client.get("/products/{}/history".format(product["id"]), headers=self.admin).json()
        self.assertEqual(history[-1]["change"], "2 units sold by admin")

    def test_oversell_returns_conflict(self):
        product = self.create_product(stock=1)
        response = self.client.post(
            "/products/{}/sell".format(product["id"]),
            json={"sale_date": "2024-02-01", "quantity": 2},
            headers=self.admin,
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(
            self.client.get("/products/{}".format(product["id"]), headers=self.admin).json()["stock"],
            1,
        )

    def test_update_rejects_unknown_fields(self):
        product = self.create_product()
        response = self.client.patch(
            "/products/{}".format(product["id"]), json={"status": "Sold"}, headers=self.admin
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["loc"], ["status"])

        ok = self.client.patch("/products/{}".format(product["id"]), json={"price": 550}, headers=self.admin)
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.json()["price"], 550)

    def test_archive_and_missing_products(self):
        product = self.create_product()
        archived = self.client.delete("/products/{}".format(product["id"]), headers=self.admin)
        self.assertEqual(archived.status_code, 200)
        self.assertEqual((archived.json()["status"], archived.json()["stock"]), ("Sold", 0))

        self.assertEqual(self.client.get("/products/999", headers=self.admin).status_code, 404)
        self.assertEqual(self.client.delete("/products/999", headers=self.admin).status_code, 404)
        self.assertEqual(self.client.get("/products/999/history", headers=self.admin).json(), [])

    def test_search(self):
        self.create_product()
        self.create_product(product_id="mbp14", name="MacBook Pro", category="Laptops")

        response = self.client.get("/products", params={"q": "mac"}, headers=self.admin)
        self.assertEqual([p["product_id"] for p in response.json()], ["mbp14"])
        response = self.client.get("/products", params={"category": "Mobile Phones"}, headers=self.admin)
        self.assertEqual([p["product_id"] for p in response.json()], ["iph13"])


class RoleApiTest(ApiTestCase):
    def test_worker_can_add_sell_and_archive_but_not_edit(self):
        worker = self.worker()
        product = self.client.post("/products", json=IPHONE, headers=worker)
        self.assertEqual(product.status_code, 201)
        product_url = "/products/{}".format(product.json()["id"])

        sold = self.client.post(
            product_url + "/sell", json={"sale_date": "2024-02-01", "quantity": 1}, headers=worker
        )
        self.assertEqual(sold.status_code, 200)
        self.assertEqual(sold.json()["seller"], "worker")

        self.assertEqual(self.client.patch(product_url, json={"price": 1}, headers=worker).status_code, 403)
        self.assertEqual(self.client.get("/analytics", headers=worker).status_code, 403)
        self.assertEqual(self.client.get("/users", headers=worker).status_code, 403)

        archived = self.client.delete(product_url, headers=worker)
        self.assertEqual(archived.status_code, 200)
        self.assertEqual((archived.json()["status"], archived.json()["stock"]), ("Sold", 0))

    def test_role_change_applies_to_existing_tokens(self):
        worker = self.worker()
        self.assertEqual(self.client.get("/analytics", headers=worker).status_code, 403)

        me = self.client.get("/auth/me", headers=worker).json()
        promoted = self.client.patch("/users/{}".format(me["id"]), json={"role": "admin"}, headers=self.admin)
        self.assertEqual(promoted.status_code, 200)

        self.assertEqual(self.client.get("/analytics", headers=worker).status_code, 200)
        self.assertEqual(self.client.get("/auth/me", headers=worker).json()["role"], "admin")

    def test_dashboard_and_analytics(self):
        self.worker()
        self.create_product(stock=2)

        summary = self.client.get("/dashboard/summary", headers=self.admin).json()
        self.assertEqual((summary["total_products"], summary["low_stock"]), (1, 1))

        analytics = self.client.get("/analytics", headers=self.admin).json()
        self.assertEqual(analytics["total_inventory_value"], 1000)
        self.assertEqual(len(self.client.get("/history", headers=self.admin).json()), 1)

    def test_duplicate_user_conflict(self):
        self.worker()
        response = self.client.post(
            "/users",
            json={"name": "Again", "email": "worker@stocksavvy.com", "password": "worker123"},
            headers=self.admin,
        )
        self.assertEqual(response.status_code, 409)


if __name__ == "__main__":
    unittest.main()
