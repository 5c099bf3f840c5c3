from rest_framework import generics
from rest_framework.permissions import AllowAny, IsAuthenticated
from .serializers import UserRegistrationSerializer, UserDetailsSerializer


class RegisterAPIView(generics.CreateAPIView):
    serializer_class = UserRegistrationSerializer
    permission_classes = [AllowAny]

register_api_view = RegisterAPIView.as_view()


class UserDetailView(generics.RetrieveAPIView):
    """Profile record of the authenticated user."""
    serializer_class = UserDetailsSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user

user_detail_view = UserDetailView.as_view()
