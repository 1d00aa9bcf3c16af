from locust import HttpUser, task, between

class ScrapeUser(HttpUser):
    wait_time = between(0.01,0.1)

    def on_start(self):
        self.owner = f"c{id(self)}"
        self.client.post("/table/create", json={"table":"t1"})

    @task(3)
    def lock_cycle(self):
        self.client.post("/lock/acquire", json={"table":"t1","key":"k1","type":"read","owner":self.owner})
        self.client.post("/lock/release", json={"table":"t1","key":"k1","owner":self.owner})

    @task
    def scrape(self):
        self.client.get("/metrics")
