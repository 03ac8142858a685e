"""
Dashboard Router - 分析結果、歷史紀錄、上傳與報表
"""

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from chemviz.services.api_service import ChemvizApiService
from chemviz.services.export_service import report_filename
from chemviz.models.analytics_models import AnalyticsSnapshot, HistoryListing
from chemviz.dependencies import get_api_service

router = APIRouter()


@router.get("/health")
async def health(api: ChemvizApiService = Depends(get_api_service)):
    """後端是否可連線"""
    return {"backend_reachable": await api.health_check()}


@router.get("/analytics", response_model=AnalyticsSnapshot)
async def latest_analytics(api: ChemvizApiService = Depends(get_api_service)):
    """最新一筆資料集的分析結果"""
    return await api.get_analytics()


@router.get("/analytics/{dataset_id}", response_model=AnalyticsSnapshot)
async def analytics(dataset_id: str, api: ChemvizApiService = Depends(get_api_service)):
    """指定資料集的分析結果"""
    return await api.get_analytics(dataset_id)


@router.get("/history", response_model=HistoryListing)
async def history(api: ChemvizApiService = Depends(get_api_service)):
    """歷史上傳紀錄"""
    return await api.get_history_listing()


@router.post("/upload", response_model=AnalyticsSnapshot)
async def upload(
    file: UploadFile = File(...),
    api: ChemvizApiService = Depends(get_api_service),
):
    """上傳 CSV 並回傳分析結果"""
    content = await file.read()
    return await api.upload_csv(file.filename or "", content)


def _pdf_response(content: bytes) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{report_filename()}"'},
    )


@router.get("/report")
async def latest_report(api: ChemvizApiService = Depends(get_api_service)):
    """下載最新資料集的 PDF 報表"""
    return _pdf_response(await api.download_report())


@router.get("/report/{dataset_id}")
async def report(dataset_id: str, api: ChemvizApiService = Depends(get_api_service)):
    """下載指定資料集的 PDF 報表"""
    return _pdf_response(await api.download_report(dataset_id))
