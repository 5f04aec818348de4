from typing import Annotated

from fastapi import Depends

from call_signals.analysis.service import AnalysisService
from call_signals.llm.gateway import LLMGateway, get_gateway

GatewayDep = Annotated[LLMGateway, Depends(get_gateway)]


def get_analysis_service(gateway: GatewayDep) -> AnalysisService:
    return AnalysisService(gateway)


AnalysisServiceDep = Annotated[AnalysisService, Depends(get_analysis_service)]
