import uvicorn
from fastapi import Depends, FastAPI

from relay.config import settings
from relay.logging_config import setup_logging
from relay.routers import callback
from relay.services.reply_service import RelayService

setup_logging(settings.log_level)

app = FastAPI(
    title="LINE Relay",
    description="LINE chat relay with admission control and reply shaping",
    version="0.1.0",
)

app.include_router(callback.router)


@app.get("/health")
async def health(relay: RelayService = Depends(callback.get_relay_service)):
    return {"status": "ok", **relay.state.stats()}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
