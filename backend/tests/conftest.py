# 테스트 공통 설정
# - 앱 모듈을 import 하기 전에 필수 환경변수를 채움 (JWT_SECRET_KEY 등)
# - 업로드 디렉토리는 임시 폴더, 메일 재시도는 1회로

import os
import tempfile

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="delicious_uploads_"))
os.environ.setdefault("MAIL_SEND_ATTEMPTS", "1")
os.environ.setdefault("LOG_LEVEL", "WARNING")
