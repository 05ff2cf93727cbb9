"""
App layer: API 서버 (FastAPI).

역할:
- 파일 업로드 (템플릿, CSV), 폼 입력 파싱
- 에러 → HTTP 상태 코드 변환
- ⚠️ 렌더/전송 로직 없음 (render, delivery에 위임)
"""
