import logging

import uvicorn

from print_agent import env
from print_agent.api import create_app

logging.basicConfig(
    level=env.LOG_LEVEL,
    format="%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
)

app = create_app()


def run():
    uvicorn.run(app, host=env.AGENT_HOST, port=env.AGENT_PORT)


if __name__ == "__main__":
    run()
