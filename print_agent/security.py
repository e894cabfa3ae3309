from fastapi import Header, HTTPException

from print_agent import env


def verify_agent_token(x_agent_token: str = Header(...)):
    if not env.PRINT_AGENT_TOKEN:
        raise HTTPException(
            status_code=500,
            detail="PRINT_AGENT_TOKEN is not configured on the agent"
        )

    if x_agent_token != env.PRINT_AGENT_TOKEN:
        raise HTTPException(
            status_code=401,
            detail="Invalid agent token"
        )
